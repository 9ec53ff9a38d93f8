"""
Project Service

业务逻辑层 - Project CRUD and name availability
"""

import logging
from typing import Optional

from deployer.config.logging_config import log_print
from deployer.config.settings import DeployConfig
from deployer.core.project_locks import ProjectLockRegistry, project_write_locks
from deployer.db.models.project import Project
from deployer.db.repository import ProjectRepository
from deployer.db.schemas import ProjectCreate, ProjectResponse, validate_project_name
from deployer.utils.model.response_code import ResponseCode
from deployer.utils.model.response_model import BaseResponse, ListResponse

logger = logging.getLogger(__name__)


def to_response(project: Project) -> ProjectResponse:
    return ProjectResponse.model_validate(project).model_copy(
        update={"url": DeployConfig.get_site_url(project.name)}
    )


class ProjectService:
    """
    项目服务类

    提供项目相关的基本 CRUD 操作
    """

    def __init__(self, project_repo: Optional[ProjectRepository] = None, locks: Optional[ProjectLockRegistry] = None):
        self.project_repo = project_repo or ProjectRepository()
        self.locks = locks or project_write_locks

    @log_print
    async def list_projects(self, user_id: str, skip: int = 0, limit: int = 50):
        """获取用户的项目列表"""
        try:
            projects = await self.project_repo.get_projects_by_user(user_id=user_id, skip=skip, limit=limit)
            total = await self.project_repo.count_projects(user_id=user_id)
            return ListResponse.success(items=[to_response(p) for p in projects], total=total)
        except Exception as e:
            logger.error(f"获取项目列表失败: {e}", exc_info=True)
            return BaseResponse.error(message=f"Failed to list projects: {str(e)}")

    @log_print
    async def create_project(self, data: ProjectCreate, user_id: str):
        """创建新项目"""
        try:
            if await self.project_repo.is_name_reserved(name=data.name):
                return BaseResponse.error(code=ResponseCode.CONFLICT, message="Project name is reserved")
            if await self.project_repo.name_exists(name=data.name):
                return BaseResponse.error(code=ResponseCode.CONFLICT, message="Project name already exists")

            project = await self.project_repo.create_project(data=data, user_id=user_id)
            return BaseResponse.created(data=to_response(project), message="Project created")
        except Exception as e:
            logger.error(f"创建项目失败: {e}", exc_info=True)
            return BaseResponse.error(message=f"Failed to create project: {str(e)}")

    @log_print
    async def get_project(self, project_id: str, user_id: str):
        """获取项目详情"""
        try:
            project = await self.project_repo.get_owned_project(project_id=project_id, user_id=user_id)
            if not project:
                return BaseResponse.not_found(message="Project not found")
            return BaseResponse.success(data=to_response(project))
        except Exception as e:
            logger.error(f"获取项目详情失败: {e}", exc_info=True)
            return BaseResponse.error(message=f"Failed to get project: {str(e)}")

    @log_print
    async def delete_project(self, project_id: str, user_id: str):
        """
        删除项目（级联删除部署记录）

        The bucket and its objects are left in place.
        """
        try:
            project = await self.project_repo.get_owned_project(project_id=project_id, user_id=user_id)
            if not project:
                return BaseResponse.not_found(message="Project not found")

            async with self.locks.hold(project.id):
                await self.project_repo.delete_project(project_id=project.id)
            self.locks.discard(project.id)

            logger.info(f"Deleted project {project.name} (ID: {project.id}); bucket left in place")
            return BaseResponse.success(message="Project deleted successfully")
        except Exception as e:
            logger.error(f"删除项目失败: {e}", exc_info=True)
            return BaseResponse.error(message=f"Failed to delete project: {str(e)}")

    @log_print
    async def check_availability(self, name: str):
        """检查项目名称（即 bucket 名称）是否可用"""
        try:
            try:
                validate_project_name(name)
            except ValueError as e:
                return BaseResponse.success(data={"available": False, "reason": str(e)})

            if await self.project_repo.is_name_reserved(name=name):
                return BaseResponse.success(data={"available": False, "reason": "reserved"})
            if await self.project_repo.name_exists(name=name):
                return BaseResponse.success(data={"available": False, "reason": "taken"})
            return BaseResponse.success(data={"available": True})
        except Exception as e:
            logger.error(f"检查名称失败: {e}", exc_info=True)
            return BaseResponse.error(message=f"Failed to check name: {str(e)}")
