"""
Project Repository

数据访问层 - Project CRUD and active pointer updates
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, exists

from deployer.db.models.project import Project
from deployer.db.models.deployment import Deployment, DeploymentStatus
from deployer.db.models.reserved_name import ReservedName
from deployer.db.schemas.project import ProjectCreate
from deployer.db.repository.base_repository import BaseRepository
from deployer.db.session import async_with_session


class ProjectRepository(BaseRepository[Project, ProjectCreate]):
    """Project repository with specialized queries"""

    def __init__(self):
        super().__init__(Project)

    @async_with_session
    async def get_project_by_id(self, session: AsyncSession, project_id: str) -> Optional[Project]:
        """Get project by ID"""
        return await self.get_by_id(session, project_id)

    @async_with_session
    async def get_project_by_name(self, session: AsyncSession, name: str) -> Optional[Project]:
        """Get project by exact (case-sensitive) name"""
        stmt = select(Project).where(Project.name == name)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @async_with_session
    async def get_owned_project(self, session: AsyncSession, project_id: str, user_id: str) -> Optional[Project]:
        """Get a project only if it belongs to ``user_id``"""
        stmt = select(Project).where(Project.id == project_id, Project.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @async_with_session
    async def get_projects_by_user(
        self,
        session: AsyncSession,
        user_id: str,
        skip: int = 0,
        limit: int = 50
    ) -> List[Project]:
        """Get all projects owned by a user, newest first"""
        return await self.get_multi(
            session,
            skip=skip,
            limit=limit,
            filters={"user_id": user_id},
            order_by="-create_time"
        )

    @async_with_session
    async def count_projects(self, session: AsyncSession, user_id: str) -> int:
        """Count projects owned by a user"""
        return await self.count(session, filters={"user_id": user_id})

    @async_with_session
    async def create_project(
        self,
        session: AsyncSession,
        data: ProjectCreate,
        user_id: str,
    ) -> Project:
        """Create a new project owned by ``user_id``"""
        return await self.create(session, data, user_id=user_id, create_by=user_id)

    @async_with_session
    async def is_name_reserved(self, session: AsyncSession, name: str) -> bool:
        """Whether the name is in the reserved names table"""
        result = await session.execute(select(exists().where(ReservedName.name == name)))
        return bool(result.scalar())

    @async_with_session
    async def name_exists(self, session: AsyncSession, name: str) -> bool:
        """Whether any project already uses the name"""
        result = await session.execute(select(exists().where(Project.name == name)))
        return bool(result.scalar())

    @async_with_session
    async def set_active_deployment(
        self,
        session: AsyncSession,
        project_id: str,
        deployment_id: str,
        updated_by: Optional[str] = None,
    ) -> bool:
        """
        Point the project at a deployment

        The pointer only moves when the deployment belongs to the project and
        has status ``success``; returns False otherwise.
        """
        target_ok = exists().where(
            Deployment.id == deployment_id,
            Deployment.project_id == project_id,
            Deployment.status == DeploymentStatus.SUCCESS.value,
        )
        stmt = (
            update(Project)
            .where(Project.id == project_id, target_ok)
            .values(active_deployment_id=deployment_id, update_by=updated_by)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    @async_with_session
    async def delete_project(self, session: AsyncSession, project_id: str) -> Optional[Project]:
        """Delete a project and cascade to its deployments"""
        await session.execute(delete(Deployment).where(Deployment.project_id == project_id))
        return await self.delete(session, project_id)
