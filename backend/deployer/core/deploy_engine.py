"""
Deployment engine facade.

Entry points used by the services: deploy, rollback and deployment listing.
Deploy and rollback run under a request deadline; when it expires the work
is cancelled and the deployment keeps whatever status it last reached.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from deployer.config.settings import DeployConfig
from deployer.core.object_store import ObjectStore
from deployer.core.project_locks import ProjectLockRegistry, project_write_locks
from deployer.core.quota_guard import QuotaLimits
from deployer.core.rollback_engine import RollbackEngine
from deployer.core.upload_pipeline import SiteFile, UploadPipeline
from deployer.core.version_allocator import VersionAllocator
from deployer.db.repository import DeploymentRepository, ProjectRepository
from deployer.db.schemas.deployment import DeployMeta, DeployReport, DeploymentSummary, RollbackReport
from deployer.utils.exceptions import DeadlineExceededError, NotFoundError

logger = logging.getLogger(__name__)


class DeployEngine:
    """Versioned deploys and rollbacks of static sites."""

    def __init__(
        self,
        object_store: Optional[ObjectStore] = None,
        project_repo: Optional[ProjectRepository] = None,
        deployment_repo: Optional[DeploymentRepository] = None,
        locks: Optional[ProjectLockRegistry] = None,
        allocator: Optional[VersionAllocator] = None,
        limits: Optional[QuotaLimits] = None,
        timeout: Optional[float] = DeployConfig.REQUEST_TIMEOUT,
    ):
        self.object_store = object_store or ObjectStore()
        self.project_repo = project_repo or ProjectRepository()
        self.deployment_repo = deployment_repo or DeploymentRepository()
        locks = locks or project_write_locks
        self.timeout = timeout or None

        self.pipeline = UploadPipeline(
            object_store=self.object_store,
            project_repo=self.project_repo,
            deployment_repo=self.deployment_repo,
            allocator=allocator or VersionAllocator(self.deployment_repo),
            locks=locks,
            limits=limits,
        )
        self.rollback_engine = RollbackEngine(
            object_store=self.object_store,
            project_repo=self.project_repo,
            deployment_repo=self.deployment_repo,
            locks=locks,
        )

    async def _with_deadline(self, coro, operation: str):
        if self.timeout is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{operation} exceeded its {self.timeout}s deadline")
            raise DeadlineExceededError(f"{operation} timed out after {self.timeout}s", self.timeout) from e

    async def deploy(
        self,
        project_name: str,
        owner_id: str,
        files: Sequence[SiteFile],
        meta: Optional[DeployMeta] = None,
    ) -> DeployReport:
        return await self._with_deadline(
            self.pipeline.deploy(project_name, owner_id, files, meta),
            f"Deploy of '{project_name}'",
        )

    async def rollback(self, project_id: str, target_deployment_id: str, requester_id: str) -> RollbackReport:
        return await self._with_deadline(
            self.rollback_engine.rollback(project_id, target_deployment_id, requester_id),
            f"Rollback of project {project_id}",
        )

    async def list_deployments(self, project_id: str, requester_id: str) -> List[DeploymentSummary]:
        """All deployments of an owned project, newest version first, live one flagged."""
        project = await self.project_repo.get_owned_project(project_id=project_id, user_id=requester_id)
        if project is None:
            raise NotFoundError("Project not found", resource_type="project", resource_id=project_id)

        deployments = await self.deployment_repo.get_deployments_by_project(project_id=project.id)
        return [
            DeploymentSummary.model_validate(d).model_copy(
                update={"is_active": d.id == project.active_deployment_id}
            )
            for d in deployments
        ]
