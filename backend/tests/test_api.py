"""Tests for the HTTP API."""

import importlib

import httpx
import pytest
import pytest_asyncio

from deployer.core.project_locks import ProjectLockRegistry
from deployer.main import app
from deployer.service import DeploymentService, ProjectService
from deployer.utils.auth.jwt_utils import JWTUtils


def auth(user_id: str = "user-1") -> dict:
    return {"Authorization": f"Bearer {JWTUtils.create_access_token(user_id)}"}


@pytest_asyncio.fixture
async def client(engine, monkeypatch):
    """API client with services bound to the test engine."""
    deploy_module = importlib.import_module("deployer.api.deploy_router")
    deployment_module = importlib.import_module("deployer.api.deployment_router")
    project_module = importlib.import_module("deployer.api.project_router")

    service = DeploymentService(engine=engine)
    monkeypatch.setattr(deploy_module, "deployment_service", service)
    monkeypatch.setattr(deployment_module, "deployment_service", service)
    monkeypatch.setattr(project_module, "project_service", ProjectService(locks=ProjectLockRegistry()))

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def deploy(client, files, project_name="demo", user_id="user-1", **form):
    parts = [
        ("files", (path.rsplit("/", 1)[-1], content, "application/octet-stream", {"X-File-Path": path}))
        for path, content in files.items()
    ]
    return await client.post(
        "/api/deploy",
        data={"project_name": project_name, **form},
        files=parts,
        headers=auth(user_id),
    )


class TestDeployApi:
    """POST /api/deploy"""

    @pytest.mark.asyncio
    async def test_deploy_and_list(self, client, s3):
        response = await deploy(client, {"index.html": b"<h1>", "css/site.css": b"body{}"}, source="ci")

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == 200
        assert body["data"]["version"] == 1
        assert body["data"]["files_count"] == 2
        assert s3.live_keys("demo") == ["css/site.css", "index.html"]
        assert s3.content_type("demo", "index.html") == "text/html"

        projects = (await client.get("/api/projects", headers=auth())).json()
        assert projects["data"]["total"] == 1
        project = projects["data"]["items"][0]
        assert project["name"] == "demo"
        assert project["url"] == "http://demo.sites.test"

        listing = await client.get(f"/api/projects/{project['id']}/deployments", headers=auth())
        [item] = listing.json()["data"]["items"]
        assert item["is_active"] is True
        assert item["source"] == "ci"

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.post("/api/deploy", data={"project_name": "demo"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejected_content(self, client):
        response = await deploy(client, {"index.html": b"x", "bad.exe": b"y"})

        assert response.status_code == 400
        assert response.json()["data"] == {"offending_paths": ["bad.exe"]}

    @pytest.mark.asyncio
    async def test_quota_exceeded(self, client):
        response = await deploy(client, {"index.html": b"x" * 2000})

        assert response.status_code == 413
        assert response.json()["data"]["reason"] == "file_too_large"

    @pytest.mark.asyncio
    async def test_name_taken_by_other_user(self, client):
        await deploy(client, {"index.html": b"x"})
        response = await deploy(client, {"index.html": b"x"}, user_id="user-2")

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_commit_hash(self, client):
        response = await deploy(client, {"index.html": b"x"}, commit_hash="not-hex!")
        assert response.status_code == 422


class TestDeploymentApi:
    """Rollback, deployment details and logs."""

    @pytest.mark.asyncio
    async def test_rollback_flow(self, client, s3):
        first = (await deploy(client, {"index.html": b"one", "a.css": b"a"})).json()["data"]
        await deploy(client, {"index.html": b"two"})
        project_id = (await client.get("/api/projects", headers=auth())).json()["data"]["items"][0]["id"]

        response = await client.post(
            f"/api/projects/{project_id}/deployments/{first['deployment_id']}/rollback",
            headers=auth(),
        )

        assert response.status_code == 200
        assert response.json()["data"]["version"] == 1
        assert s3.body("demo", "index.html") == b"one"

    @pytest.mark.asyncio
    async def test_rollback_unknown_deployment(self, client):
        await deploy(client, {"index.html": b"one"})
        project_id = (await client.get("/api/projects", headers=auth())).json()["data"]["items"][0]["id"]

        response = await client.post(
            f"/api/projects/{project_id}/deployments/missing/rollback",
            headers=auth(),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_deployment_details_and_logs(self, client):
        rejected = await deploy(client, {"about.html": b"x"})
        assert rejected.status_code == 400
        project_id = (await client.get("/api/projects", headers=auth())).json()["data"]["items"][0]["id"]
        [item] = (await client.get(f"/api/projects/{project_id}/deployments", headers=auth())).json()["data"]["items"]

        details = await client.get(f"/api/deployments/{item['id']}", headers=auth())
        logs = await client.get(f"/api/deployments/{item['id']}/logs", headers=auth())
        hidden = await client.get(f"/api/deployments/{item['id']}", headers=auth("user-2"))

        assert details.json()["data"]["status"] == "failed"
        assert "index.html" in logs.json()["data"]["logs"]
        assert hidden.status_code == 404


class TestProjectApi:
    """Project CRUD and name checks."""

    @pytest.mark.asyncio
    async def test_create_get_delete(self, client, s3):
        created = await client.post("/api/projects", json={"name": "my-site"}, headers=auth())
        assert created.status_code == 201
        project_id = created.json()["data"]["id"]

        fetched = await client.get(f"/api/projects/{project_id}", headers=auth())
        assert fetched.json()["data"]["name"] == "my-site"
        assert (await client.get(f"/api/projects/{project_id}", headers=auth("user-2"))).status_code == 404

        await deploy(client, {"index.html": b"x"}, project_name="my-site")
        deleted = await client.delete(f"/api/projects/{project_id}", headers=auth())
        assert deleted.status_code == 200
        assert (await client.get(f"/api/projects/{project_id}", headers=auth())).status_code == 404
        # Objects are left in place
        assert s3.live_keys("my-site") == ["index.html"]

    @pytest.mark.asyncio
    async def test_create_reserved_or_duplicate(self, client):
        assert (await client.post("/api/projects", json={"name": "admin"}, headers=auth())).status_code == 409
        await client.post("/api/projects", json={"name": "my-site"}, headers=auth())
        assert (await client.post("/api/projects", json={"name": "my-site"}, headers=auth())).status_code == 409

    @pytest.mark.asyncio
    async def test_create_invalid_name(self, client):
        response = await client.post("/api/projects", json={"name": "Bad_Name"}, headers=auth())
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_check_availability(self, client):
        await client.post("/api/projects", json={"name": "taken-name"}, headers=auth())

        async def check(name):
            response = await client.post("/api/buckets/check", json={"name": name}, headers=auth())
            return response.json()["data"]

        assert (await check("fresh-name")) == {"available": True}
        assert (await check("taken-name"))["reason"] == "taken"
        assert (await check("status"))["reason"] == "reserved"
        assert (await check("x"))["available"] is False


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "ok"}
