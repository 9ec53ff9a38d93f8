"""Tests for the dual-write upload pipeline."""

import pytest
from unittest.mock import AsyncMock

from conftest import site_files
from deployer.config.settings import DeployConfig
from deployer.db.models.deployment import DeploymentStatus
from deployer.db.repository import DeploymentRepository, ProjectRepository
from deployer.db.schemas import DeployMeta, ProjectCreate
from deployer.utils.exceptions import (
    BusinessException,
    ConflictError,
    ContentRejectedError,
    PointerUpdateError,
    QuotaExceededError,
    StorageError,
)

deployments = DeploymentRepository()
projects = ProjectRepository()


def put_count(s3) -> int:
    return [op for op, _ in s3.calls].count("put_object")


class TestDeploy:
    """Successful deploys."""

    @pytest.mark.asyncio
    async def test_first_deploy_writes_live_and_snapshot(self, engine, s3):
        report = await engine.deploy(
            "demo", "user-1", site_files({"index.html": b"0123456789", "style.css": b"01234"})
        )

        assert report.version == 1
        assert report.files_count == 2
        assert report.size_bytes == 15
        assert report.url == DeployConfig.get_site_url("demo")
        assert report.missed_files == []

        prefix = f"_deployments/{report.deployment_id}/"
        assert s3.live_keys("demo") == ["index.html", "style.css"]
        assert s3.keys("demo", prefix) == [prefix + "index.html", prefix + "style.css"]
        assert s3.content_type("demo", "index.html") == "text/html"
        assert "demo" in s3.policies

        deployment = await deployments.get_deployment_by_id(report.deployment_id)
        assert deployment.status == DeploymentStatus.SUCCESS.value
        assert (deployment.files_count, deployment.size_bytes) == (2, 15)

        project = await projects.get_project_by_name("demo")
        assert project.user_id == "user-1"
        assert project.active_deployment_id == report.deployment_id

    @pytest.mark.asyncio
    async def test_second_deploy_moves_pointer_and_keeps_old_snapshot(self, engine, s3):
        first = await engine.deploy(
            "demo", "user-1", site_files({"index.html": b"0123456789", "style.css": b"01234"})
        )
        second = await engine.deploy("demo", "user-1", site_files({"index.html": b"012345678901"}))

        assert second.version == 2
        project = await projects.get_project_by_name("demo")
        assert project.active_deployment_id == second.deployment_id

        old_prefix = f"_deployments/{first.deployment_id}/"
        assert s3.keys("demo", old_prefix) == [old_prefix + "index.html", old_prefix + "style.css"]
        assert s3.body("demo", old_prefix + "index.html") == b"0123456789"

        assert s3.body("demo", "index.html") == b"012345678901"
        # Deploys are additive: stale live files stay until a rollback
        assert s3.live_keys("demo") == ["index.html", "style.css"]

    @pytest.mark.asyncio
    async def test_paths_are_normalized(self, engine, s3):
        await engine.deploy(
            "demo", "user-1", site_files({"./index.html": b"<html>", "css\\site.css": b"body{}"})
        )

        assert s3.live_keys("demo") == ["css/site.css", "index.html"]

    @pytest.mark.asyncio
    async def test_metadata_recorded(self, engine):
        meta = DeployMeta(source="ci", repo_url="https://example.com/r.git", commit_hash="BEEF", commit_message="ship")
        report = await engine.deploy("demo", "user-1", site_files({"index.html": b"x"}), meta)

        deployment = await deployments.get_deployment_by_id(report.deployment_id)
        assert (deployment.source, deployment.commit_hash, deployment.commit_message) == ("ci", "beef", "ship")
        project = await projects.get_project_by_name("demo")
        assert project.repo_url == "https://example.com/r.git"


class TestProjectResolution:
    """Name and ownership checks before anything is allocated."""

    @pytest.mark.asyncio
    async def test_name_owned_by_other_user(self, engine):
        await engine.deploy("demo", "user-1", site_files({"index.html": b"x"}))

        with pytest.raises(ConflictError):
            await engine.deploy("demo", "user-2", site_files({"index.html": b"y"}))

        project = await projects.get_project_by_name("demo")
        assert len(await deployments.get_deployments_by_project(project.id)) == 1

    @pytest.mark.asyncio
    async def test_reserved_name(self, engine, s3):
        with pytest.raises(ConflictError):
            await engine.deploy("admin", "user-1", site_files({"index.html": b"x"}))

        assert s3.buckets == {}
        assert await projects.get_project_by_name("admin") is None

    @pytest.mark.asyncio
    async def test_malformed_name(self, engine):
        with pytest.raises(BusinessException) as exc_info:
            await engine.deploy("My_Site", "user-1", site_files({"index.html": b"x"}))
        assert exc_info.value.code == 400

    @pytest.mark.asyncio
    async def test_existing_project_is_reused(self, engine):
        created = await projects.create_project(data=ProjectCreate(name="demo"), user_id="user-1")

        report = await engine.deploy("demo", "user-1", site_files({"index.html": b"x"}))

        deployment = await deployments.get_deployment_by_id(report.deployment_id)
        assert deployment.project_id == created.id


class TestRejections:
    """Rejected batches are recorded as failed and write nothing."""

    @pytest.mark.asyncio
    async def test_content_rejection_names_every_offender(self, engine, s3):
        with pytest.raises(ContentRejectedError) as exc_info:
            await engine.deploy(
                "demo", "user-1", site_files({"index.html": b"x", "a.exe": b"y", "b.php": b"z"})
            )

        error = exc_info.value
        assert error.offending_paths == ["a.exe", "b.php"]
        assert put_count(s3) == 0

        deployment = await deployments.get_deployment_by_id(error.deployment_id)
        assert deployment.status == DeploymentStatus.FAILED.value
        assert "a.exe" in deployment.logs and "b.php" in deployment.logs

    @pytest.mark.asyncio
    async def test_paths_colliding_after_normalization_rejected(self, engine, s3):
        with pytest.raises(ContentRejectedError) as exc_info:
            await engine.deploy(
                "demo", "user-1", site_files({"index.html": b"x" * 10, "app.js": b"a" * 1500, "./app.js": b"b" * 10})
            )

        assert exc_info.value.offending_paths == ["app.js"]
        assert put_count(s3) == 0
        deployment = await deployments.get_deployment_by_id(exc_info.value.deployment_id)
        assert deployment.status == DeploymentStatus.FAILED.value
        assert deployment.size_bytes == 0

    @pytest.mark.asyncio
    async def test_missing_entry_document(self, engine, s3):
        with pytest.raises(ContentRejectedError):
            await engine.deploy("demo", "user-1", site_files({"about.html": b"x"}))
        assert put_count(s3) == 0

    @pytest.mark.asyncio
    async def test_user_quota_exceeded_by_one_byte(self, engine, s3):
        # limits fixture: 1024 per file, 2048 per deployment, 4096 per user
        batch = {"index.html": b"a" * 1000, "app.js": b"b" * 1000}
        await engine.deploy("demo", "user-1", site_files(batch))
        second = await engine.deploy("other", "user-1", site_files(batch))
        writes_before = put_count(s3)

        with pytest.raises(QuotaExceededError) as exc_info:
            await engine.deploy("demo", "user-1", site_files({"index.html": b"c" * 97}))

        error = exc_info.value
        assert error.reason == "user_quota_exceeded"
        assert (error.before_bytes, error.after_bytes, error.limit_bytes) == (4000, 4097, 4096)
        assert error.code == 413
        assert put_count(s3) == writes_before

        deployment = await deployments.get_deployment_by_id(error.deployment_id)
        assert deployment.status == DeploymentStatus.FAILED.value
        assert deployment.version == 2
        assert second.version == 1

        project = await projects.get_project_by_name("demo")
        assert project.active_deployment_id != error.deployment_id

    @pytest.mark.asyncio
    async def test_failed_deployments_do_not_count_towards_quota(self, engine):
        with pytest.raises(QuotaExceededError):
            await engine.deploy("demo", "user-1", site_files({"index.html": b"a" * 2000}))

        assert await deployments.sum_success_bytes_for_user("user-1") == 0

    @pytest.mark.asyncio
    async def test_bucket_failure_marks_deployment_failed(self, engine, s3):
        s3.fail_on("create_bucket")

        with pytest.raises(StorageError):
            await engine.deploy("demo", "user-1", site_files({"index.html": b"x"}))

        project = await projects.get_project_by_name("demo")
        [deployment] = await deployments.get_deployments_by_project(project.id)
        assert deployment.status == DeploymentStatus.FAILED.value
        assert project.active_deployment_id is None


class TestPartialFailures:
    """Per-file storage failures do not abort the deploy."""

    @pytest.mark.asyncio
    async def test_live_write_failure_skips_file(self, engine, s3):
        s3.fail_on("put_object", key="a.css")

        report = await engine.deploy(
            "demo", "user-1", site_files({"index.html": b"12345", "a.css": b"123"})
        )

        assert report.missed_files == ["a.css"]
        assert (report.files_count, report.size_bytes) == (1, 5)
        assert s3.live_keys("demo") == ["index.html"]

        deployment = await deployments.get_deployment_by_id(report.deployment_id)
        assert deployment.status == DeploymentStatus.SUCCESS.value
        assert "a.css" in deployment.logs

    @pytest.mark.asyncio
    async def test_snapshot_write_failure_is_reported(self, engine, s3):
        s3.fail_on("put_object", key=lambda k: k.startswith("_deployments/") and k.endswith("b.js"))

        report = await engine.deploy(
            "demo", "user-1", site_files({"index.html": b"12345", "b.js": b"123"})
        )

        assert report.snapshot_failures == ["b.js"]
        assert report.files_count == 2
        assert s3.live_keys("demo") == ["b.js", "index.html"]
        prefix = f"_deployments/{report.deployment_id}/"
        assert s3.keys("demo", prefix) == [prefix + "index.html"]

    @pytest.mark.asyncio
    async def test_pointer_failure_surfaces_after_success(self, engine):
        engine.pipeline.project_repo.set_active_deployment = AsyncMock(return_value=False)

        with pytest.raises(PointerUpdateError) as exc_info:
            await engine.deploy("demo", "user-1", site_files({"index.html": b"x"}))

        deployment = await deployments.get_deployment_by_id(exc_info.value.deployment_id)
        assert deployment.status == DeploymentStatus.SUCCESS.value
