"""Per-project version numbering for new deployments."""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from deployer.core.project_locks import ProjectLockRegistry, project_allocation_locks
from deployer.db.models.deployment import Deployment
from deployer.db.repository import DeploymentRepository
from deployer.db.schemas.deployment import DeployMeta, DeploymentCreate
from deployer.utils.exceptions import ConflictError

logger = logging.getLogger(__name__)


class VersionAllocator:
    """
    Reserve the next version of a project and insert its ``uploading`` row.

    "Read max version, then insert" runs inside a per-project lock and a
    single transaction. The (project_id, version) unique constraint catches
    writers in other processes.
    """

    def __init__(
        self,
        deployment_repo: Optional[DeploymentRepository] = None,
        locks: Optional[ProjectLockRegistry] = None,
    ):
        self.deployment_repo = deployment_repo or DeploymentRepository()
        self.locks = locks or project_allocation_locks

    async def allocate(self, project_id: str, meta: DeployMeta, created_by: Optional[str] = None) -> Deployment:
        data = DeploymentCreate(
            project_id=project_id,
            source=meta.source.value,
            commit_hash=meta.commit_hash,
            commit_message=meta.commit_message,
        )
        async with self.locks.hold(project_id):
            try:
                deployment = await self.deployment_repo.allocate_deployment(data=data, created_by=created_by)
            except IntegrityError as e:
                logger.warning(f"Version allocation collided for project {project_id}: {e}")
                raise ConflictError("Another deployment of this project is starting, please retry") from e

        logger.info(f"Allocated v{deployment.version} for project {project_id} (deployment={deployment.id})")
        return deployment
