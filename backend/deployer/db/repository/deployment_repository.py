"""
Deployment Repository

数据访问层 - Deployment rows, version allocation and status transitions
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from deployer.db.models.deployment import Deployment, DeploymentStatus
from deployer.db.models.project import Project
from deployer.db.schemas.deployment import DeploymentCreate
from deployer.db.repository.base_repository import BaseRepository
from deployer.db.session import async_with_session


class DeploymentRepository(BaseRepository[Deployment, DeploymentCreate]):
    """Deployment repository with specialized queries"""

    def __init__(self):
        super().__init__(Deployment)

    @async_with_session
    async def get_deployment_by_id(self, session: AsyncSession, deployment_id: str) -> Optional[Deployment]:
        """Get deployment by ID"""
        return await self.get_by_id(session, deployment_id)

    @async_with_session
    async def get_project_deployment(
        self,
        session: AsyncSession,
        project_id: str,
        deployment_id: str,
        status: Optional[DeploymentStatus] = None,
    ) -> Optional[Deployment]:
        """Get a deployment of a project, optionally requiring a status"""
        stmt = select(Deployment).where(
            Deployment.id == deployment_id,
            Deployment.project_id == project_id,
        )
        if status is not None:
            stmt = stmt.where(Deployment.status == status.value)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @async_with_session
    async def get_deployment_for_user(
        self,
        session: AsyncSession,
        deployment_id: str,
        user_id: str,
    ) -> Optional[Deployment]:
        """Get a deployment only if its project belongs to ``user_id``"""
        stmt = (
            select(Deployment)
            .join(Project, Deployment.project_id == Project.id)
            .where(Deployment.id == deployment_id, Project.user_id == user_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @async_with_session
    async def get_deployments_by_project(self, session: AsyncSession, project_id: str) -> List[Deployment]:
        """All deployments of a project, highest version first"""
        return await self.get_multi(
            session,
            limit=None,
            filters={"project_id": project_id},
            order_by="-version"
        )

    @async_with_session
    async def allocate_deployment(
        self,
        session: AsyncSession,
        data: DeploymentCreate,
        created_by: Optional[str] = None,
    ) -> Deployment:
        """
        Insert an ``uploading`` deployment with the next version of its project

        ``data.version`` is ignored and recomputed as 1 + max(version) inside
        the same transaction as the insert. Callers serialize calls per project.
        """
        stmt = select(func.coalesce(func.max(Deployment.version), 0)).where(
            Deployment.project_id == data.project_id
        )
        current = (await session.execute(stmt)).scalar() or 0
        return await self.create(
            session,
            data,
            version=current + 1,
            status=DeploymentStatus.UPLOADING.value,
            create_by=created_by,
        )

    async def _finish(self, session: AsyncSession, deployment_id: str, status: DeploymentStatus, **values) -> bool:
        # Only an uploading deployment may reach a terminal status
        stmt = (
            update(Deployment)
            .where(
                Deployment.id == deployment_id,
                Deployment.status == DeploymentStatus.UPLOADING.value,
            )
            .values(status=status.value, **values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    @async_with_session
    async def mark_success(
        self,
        session: AsyncSession,
        deployment_id: str,
        files_count: int,
        size_bytes: int,
        logs: Optional[str] = None,
    ) -> bool:
        """Transition uploading -> success with the delivered counts"""
        return await self._finish(
            session,
            deployment_id,
            DeploymentStatus.SUCCESS,
            files_count=files_count,
            size_bytes=size_bytes,
            logs=logs,
        )

    @async_with_session
    async def mark_failed(self, session: AsyncSession, deployment_id: str, logs: str) -> bool:
        """Transition uploading -> failed, recording the reason"""
        return await self._finish(session, deployment_id, DeploymentStatus.FAILED, logs=logs)

    @async_with_session
    async def sum_success_bytes_for_user(self, session: AsyncSession, user_id: str) -> int:
        """Total ``size_bytes`` of the user's successful deployments across all projects"""
        stmt = (
            select(func.coalesce(func.sum(Deployment.size_bytes), 0))
            .join(Project, Deployment.project_id == Project.id)
            .where(
                Project.user_id == user_id,
                Deployment.status == DeploymentStatus.SUCCESS.value,
            )
        )
        return int((await session.execute(stmt)).scalar() or 0)
