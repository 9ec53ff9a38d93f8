"""
Rollback of a project's live site to a previous deployment.

The live key-space is replaced as a whole: after checking that the target
snapshot exists, every live key is deleted and the snapshot is copied back
to the bucket root. The site is empty between the two phases.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from deployer.config.settings import DeployConfig
from deployer.core.batch import apply_best_effort
from deployer.core.object_store import ObjectStore
from deployer.core.project_locks import ProjectLockRegistry, project_write_locks
from deployer.core.upload_pipeline import snapshot_prefix
from deployer.db.models.deployment import DeploymentStatus
from deployer.db.repository import DeploymentRepository, ProjectRepository
from deployer.db.schemas.deployment import RollbackReport
from deployer.utils.exceptions import NotFoundError, PointerUpdateError, SnapshotMissingError

logger = logging.getLogger(__name__)


class RollbackEngine:
    """Restore a successful deployment's snapshot as the live site."""

    def __init__(
        self,
        object_store: Optional[ObjectStore] = None,
        project_repo: Optional[ProjectRepository] = None,
        deployment_repo: Optional[DeploymentRepository] = None,
        locks: Optional[ProjectLockRegistry] = None,
        snapshot_root: str = DeployConfig.SNAPSHOT_PREFIX,
    ):
        self.object_store = object_store or ObjectStore()
        self.project_repo = project_repo or ProjectRepository()
        self.deployment_repo = deployment_repo or DeploymentRepository()
        self.locks = locks or project_write_locks
        self.snapshot_root = snapshot_root

    async def _has_snapshot(self, bucket: str, prefix: str) -> bool:
        async for _ in self.object_store.iter_keys(bucket, prefix):
            return True
        return False

    async def _live_keys(self, bucket: str):
        async for key in self.object_store.iter_keys(bucket):
            if not key.startswith(self.snapshot_root):
                yield key

    async def rollback(self, project_id: str, target_deployment_id: str, requester_id: str) -> RollbackReport:
        """
        Make ``target_deployment_id`` the live deployment of the project.

        Raises:
            NotFoundError: project not owned by requester, or target missing
                or not successful (nothing changed)
            SnapshotMissingError: target has no snapshot objects (nothing changed)
            StorageError: a listing failed; live objects may be partly removed
            PointerUpdateError: objects restored but the pointer did not move
        """
        project = await self.project_repo.get_owned_project(project_id=project_id, user_id=requester_id)
        if project is None:
            raise NotFoundError("Project not found", resource_type="project", resource_id=project_id)

        target = await self.deployment_repo.get_project_deployment(
            project_id=project.id,
            deployment_id=target_deployment_id,
            status=DeploymentStatus.SUCCESS,
        )
        if target is None:
            raise NotFoundError(
                "Deployment not found or not successful",
                resource_type="deployment",
                resource_id=target_deployment_id,
            )

        bucket = project.name
        prefix = snapshot_prefix(target.id, self.snapshot_root)

        logger.info(f"Rolling back project '{bucket}' to v{target.version} (deployment={target.id})")

        async with self.locks.hold(project.id):
            if not await self._has_snapshot(bucket, prefix):
                logger.warning(f"Rollback aborted: no snapshot objects under {prefix}")
                raise SnapshotMissingError(
                    f"Cannot rollback to v{target.version}: no snapshot available for this version",
                    deployment_id=target.id,
                    version=target.version,
                )

            async def delete_live(key: str) -> None:
                await self.object_store.delete_object(bucket, key)

            removed = await apply_best_effort(self._live_keys(bucket), delete_live, "Delete")

            async def restore(key: str) -> None:
                dest = key[len(prefix):]
                if dest:
                    await self.object_store.copy_object(bucket, key, dest)

            restored = await apply_best_effort(
                self.object_store.iter_keys(bucket, prefix), restore, "Restore"
            )

            try:
                moved = await self.project_repo.set_active_deployment(
                    project_id=project.id,
                    deployment_id=target.id,
                    updated_by=requester_id,
                )
            except SQLAlchemyError as e:
                raise PointerUpdateError(
                    f"Failed to update active deployment: {e}",
                    project_id=project.id,
                    deployment_id=target.id,
                ) from e
            if not moved:
                raise PointerUpdateError(
                    "Failed to update active deployment",
                    project_id=project.id,
                    deployment_id=target.id,
                )

        logger.info(
            f"Rollback complete: {restored.succeeded} files restored to v{target.version}, "
            f"{removed.succeeded} live files removed, "
            f"{len(removed.failures) + len(restored.failures)} failures"
        )

        return RollbackReport(
            message=f"Rolled back to v{target.version}",
            deployment_id=target.id,
            version=target.version,
            files_restored=restored.succeeded,
            files_removed=removed.succeeded,
            url=DeployConfig.get_site_url(bucket),
            failed_keys=removed.failed_keys + restored.failed_keys,
        )
