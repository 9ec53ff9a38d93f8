"""
Project API Router

项目管理相关的API路由定义
只包括项目基本CRUD操作和名称可用性检查
"""

from fastapi import APIRouter, Depends, Path, Query

from deployer.db.schemas import NameAvailabilityRequest, ProjectCreate
from deployer.service.project_service import ProjectService
from deployer.utils.auth import get_current_user_id

# 创建路由器
project_router = APIRouter(prefix="/projects", tags=["projects"])
bucket_router = APIRouter(prefix="/buckets", tags=["projects"])

# 创建service实例
project_service = ProjectService()


@project_router.get(
    "",
    summary="获取项目列表",
    operation_id="list_projects"
)
async def list_projects(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of records"),
    user_id: str = Depends(get_current_user_id),
):
    """获取当前用户的项目列表（分页）"""
    response = await project_service.list_projects(user_id=user_id, skip=skip, limit=limit)
    return response.to_json_response()


@project_router.post(
    "",
    summary="创建新项目",
    operation_id="create_project"
)
async def create_project(data: ProjectCreate, user_id: str = Depends(get_current_user_id)):
    """
    创建新项目

    只创建项目记录，bucket 在首次部署时创建
    """
    response = await project_service.create_project(data, user_id)
    return response.to_json_response()


@project_router.get(
    "/{project_id}",
    summary="获取项目详情",
    operation_id="get_project"
)
async def get_project(
    project_id: str = Path(..., description="Project ID"),
    user_id: str = Depends(get_current_user_id),
):
    """根据ID获取项目详情"""
    response = await project_service.get_project(project_id, user_id)
    return response.to_json_response()


@project_router.delete(
    "/{project_id}",
    summary="删除项目",
    operation_id="delete_project"
)
async def delete_project(
    project_id: str = Path(..., description="Project ID"),
    user_id: str = Depends(get_current_user_id),
):
    """
    删除项目（级联删除部署记录）

    只删除数据库记录，bucket 保留
    """
    response = await project_service.delete_project(project_id, user_id)
    return response.to_json_response()


@bucket_router.post(
    "/check",
    summary="检查项目名称是否可用",
    operation_id="check_bucket_availability"
)
async def check_bucket_availability(
    data: NameAvailabilityRequest,
    user_id: str = Depends(get_current_user_id),
):
    """名称需符合 bucket 命名规则，且未被保留或占用"""
    response = await project_service.check_availability(data.name)
    return response.to_json_response()
