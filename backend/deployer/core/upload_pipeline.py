"""
Dual-write upload pipeline.

A deploy stores every accepted file twice in the project bucket: once at its
relative path (the live key-space that is served) and once under
``_deployments/{deployment_id}/`` (the snapshot used for rollback). Then the
deployment is marked successful and becomes the project's active deployment.

Live files that are absent from a new deployment are not pruned; only a
rollback replaces the live key-space as a whole.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from deployer.config.settings import DeployConfig
from deployer.core import content_policy
from deployer.core.content_policy import FileEntry, Rejection
from deployer.core.object_store import ObjectStore
from deployer.core.project_locks import ProjectLockRegistry, project_write_locks
from deployer.core.quota_guard import QuotaLimits, check_quota
from deployer.core.version_allocator import VersionAllocator
from deployer.db.models.project import Project
from deployer.db.repository import DeploymentRepository, ProjectRepository
from deployer.db.schemas.deployment import DeployMeta, DeployReport
from deployer.db.schemas.project import ProjectCreate, validate_project_name
from deployer.utils.exceptions import (
    BusinessException,
    ConflictError,
    ContentRejectedError,
    DatabaseException,
    PointerUpdateError,
    QuotaExceededError,
    StorageError,
)

logger = logging.getLogger(__name__)


@dataclass
class SiteFile:
    """One uploaded file, buffered in memory."""
    path: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


def snapshot_prefix(deployment_id: str, root: str = DeployConfig.SNAPSHOT_PREFIX) -> str:
    """Key prefix of a deployment's snapshot: ``_deployments/{id}/``."""
    return f"{root}{deployment_id}/"


class UploadPipeline:
    """Deploy a file set as a new version of a project."""

    def __init__(
        self,
        object_store: Optional[ObjectStore] = None,
        project_repo: Optional[ProjectRepository] = None,
        deployment_repo: Optional[DeploymentRepository] = None,
        allocator: Optional[VersionAllocator] = None,
        locks: Optional[ProjectLockRegistry] = None,
        limits: Optional[QuotaLimits] = None,
    ):
        self.object_store = object_store or ObjectStore()
        self.project_repo = project_repo or ProjectRepository()
        self.deployment_repo = deployment_repo or DeploymentRepository()
        self.allocator = allocator or VersionAllocator(self.deployment_repo)
        self.locks = locks or project_write_locks
        self.limits = limits or QuotaLimits()

    async def resolve_project(self, project_name: str, owner_id: str, repo_url: Optional[str] = None) -> Project:
        """
        Find the owner's project by name, creating it on first deploy.

        Raises:
            BusinessException: malformed name
            ConflictError: reserved name, or the name belongs to another user
        """
        try:
            validate_project_name(project_name)
        except ValueError as e:
            raise BusinessException(str(e)) from e

        project = await self.project_repo.get_project_by_name(name=project_name)
        if project is None:
            if await self.project_repo.is_name_reserved(name=project_name):
                raise ConflictError(f"Project name '{project_name}' is reserved")
            try:
                project = await self.project_repo.create_project(
                    data=ProjectCreate(name=project_name, repo_url=repo_url),
                    user_id=owner_id,
                )
                logger.info(f"Created project '{project_name}' for user {owner_id}")
                return project
            except IntegrityError:
                # Lost a creation race; fall through to the ownership check
                project = await self.project_repo.get_project_by_name(name=project_name)
                if project is None:
                    raise

        if project.user_id != owner_id:
            raise ConflictError(f"Project name '{project_name}' is already taken")
        return project

    async def deploy(
        self,
        project_name: str,
        owner_id: str,
        files: Sequence[SiteFile],
        meta: Optional[DeployMeta] = None,
    ) -> DeployReport:
        """
        Deploy ``files`` as the next version of ``project_name``.

        Raises:
            ConflictError / BusinessException: before any allocation
            ContentRejectedError, QuotaExceededError: deployment marked failed,
                nothing written
            StorageError: bucket unavailable, deployment marked failed
            PointerUpdateError: files delivered and deployment successful,
                but the project still points at the previous deployment
        """
        meta = meta or DeployMeta()
        project = await self.resolve_project(project_name, owner_id, meta.repo_url)
        deployment = await self.allocator.allocate(project.id, meta, created_by=owner_id)

        logger.info(f"Deployment v{deployment.version} started for project '{project.name}' (deployment={deployment.id})")

        async with self.locks.hold(project.id):
            try:
                return await self._run(project, deployment.id, deployment.version, owner_id, files)
            except Exception as e:
                # No-op when the deployment already reached a terminal status
                await self._mark_failed(deployment.id, getattr(e, "message", None) or str(e))
                raise

    async def _run(
        self,
        project: Project,
        deployment_id: str,
        version: int,
        owner_id: str,
        files: Sequence[SiteFile],
    ) -> DeployReport:
        bucket = project.name
        await self.object_store.ensure_bucket(bucket)

        files = [
            SiteFile(content_policy.normalize_path(f.path), f.content, f.content_type)
            for f in files
        ]
        content_types = await self._gate(deployment_id, owner_id, files)

        prefix = snapshot_prefix(deployment_id)
        files_count = 0
        size_bytes = 0
        missed: List[str] = []
        snapshot_failures: List[str] = []

        for f in files:
            content_type = content_types[f.path]
            try:
                await self.object_store.put_object(bucket, f.path, f.content, content_type)
            except StorageError as e:
                logger.error(f"Failed to upload {f.path} to live: {e}")
                missed.append(f.path)
                continue

            try:
                await self.object_store.put_object(bucket, prefix + f.path, f.content, content_type)
            except StorageError as e:
                logger.error(f"Failed to upload {f.path} to snapshot {prefix}: {e}")
                snapshot_failures.append(f.path)

            files_count += 1
            size_bytes += f.size

        await self._finalize(project, deployment_id, files_count, size_bytes, missed, snapshot_failures)

        logger.info(f"Deployment v{version} complete: {files_count} files, {size_bytes} bytes")

        return DeployReport(
            deployment_id=deployment_id,
            project_name=project.name,
            version=version,
            files_count=files_count,
            size_bytes=size_bytes,
            url=DeployConfig.get_site_url(project.name),
            missed_files=missed,
            snapshot_failures=snapshot_failures,
        )

    async def _gate(self, deployment_id: str, owner_id: str, files: Sequence[SiteFile]) -> dict:
        """Content policy then quota, over the whole batch. Returns path -> MIME type."""
        result = content_policy.validate(
            FileEntry(f.path, f.size, f.content_type) for f in files
        )
        if isinstance(result, Rejection):
            raise ContentRejectedError(
                result.message,
                offending_paths=result.offending_paths,
                deployment_id=deployment_id,
            )

        prior = await self.deployment_repo.sum_success_bytes_for_user(user_id=owner_id)
        violation = check_quota(
            [(f.path, f.size) for f in files],
            result.total_bytes,
            prior,
            self.limits,
        )
        if violation is not None:
            raise QuotaExceededError(
                violation.message,
                reason=violation.reason.value,
                limit_bytes=violation.limit_bytes,
                before_bytes=violation.before_bytes,
                after_bytes=violation.after_bytes,
                deployment_id=deployment_id,
            )
        return result.content_types

    async def _finalize(
        self,
        project: Project,
        deployment_id: str,
        files_count: int,
        size_bytes: int,
        missed: List[str],
        snapshot_failures: List[str],
    ) -> None:
        notes = []
        if missed:
            notes.append(f"Not delivered: {', '.join(missed)}")
        if snapshot_failures:
            notes.append(f"Missing from snapshot: {', '.join(snapshot_failures)}")

        marked = await self.deployment_repo.mark_success(
            deployment_id=deployment_id,
            files_count=files_count,
            size_bytes=size_bytes,
            logs="\n".join(notes) or None,
        )
        if not marked:
            raise DatabaseException(
                f"Deployment {deployment_id} is no longer uploading",
                operation="mark_success",
            )

        try:
            moved = await self.project_repo.set_active_deployment(
                project_id=project.id,
                deployment_id=deployment_id,
            )
        except SQLAlchemyError as e:
            raise PointerUpdateError(
                f"Failed to set active deployment: {e}",
                project_id=project.id,
                deployment_id=deployment_id,
            ) from e
        if not moved:
            raise PointerUpdateError(
                "Failed to set active deployment",
                project_id=project.id,
                deployment_id=deployment_id,
            )

    async def _mark_failed(self, deployment_id: str, reason: str) -> None:
        try:
            await self.deployment_repo.mark_failed(deployment_id=deployment_id, logs=reason)
        except SQLAlchemyError as e:
            logger.error(f"Failed to mark deployment {deployment_id} as failed: {e}")
