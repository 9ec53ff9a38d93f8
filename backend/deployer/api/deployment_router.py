"""
Deployment API Router

部署记录查询与回滚相关的API路由定义
"""

from fastapi import APIRouter, Depends, Path

from deployer.service.deployment_service import DeploymentService
from deployer.utils.auth import get_current_user_id

# 创建路由器
deployment_router = APIRouter(tags=["deployments"])

# 创建service实例
deployment_service = DeploymentService()


@deployment_router.get(
    "/projects/{project_id}/deployments",
    summary="获取项目的部署列表",
    operation_id="list_deployments"
)
async def list_deployments(
    project_id: str = Path(..., description="Project ID"),
    user_id: str = Depends(get_current_user_id),
):
    """按版本倒序返回，当前生效的版本带 is_active 标记"""
    response = await deployment_service.list_deployments(project_id, user_id)
    return response.to_json_response()


@deployment_router.post(
    "/projects/{project_id}/deployments/{deployment_id}/rollback",
    summary="回滚到指定版本",
    operation_id="rollback_deployment"
)
async def rollback_deployment(
    project_id: str = Path(..., description="Project ID"),
    deployment_id: str = Path(..., description="Target deployment ID"),
    user_id: str = Depends(get_current_user_id),
):
    """
    用目标版本的快照替换线上文件，并更新项目的当前版本

    目标版本必须是成功状态且有快照
    """
    response = await deployment_service.rollback(project_id, deployment_id, user_id)
    return response.to_json_response()


@deployment_router.get(
    "/deployments/{deployment_id}",
    summary="获取部署详情",
    operation_id="get_deployment"
)
async def get_deployment(
    deployment_id: str = Path(..., description="Deployment ID"),
    user_id: str = Depends(get_current_user_id),
):
    response = await deployment_service.get_deployment(deployment_id, user_id)
    return response.to_json_response()


@deployment_router.get(
    "/deployments/{deployment_id}/logs",
    summary="获取部署日志",
    operation_id="get_deployment_logs"
)
async def get_deployment_logs(
    deployment_id: str = Path(..., description="Deployment ID"),
    user_id: str = Depends(get_current_user_id),
):
    response = await deployment_service.get_deployment_logs(deployment_id, user_id)
    return response.to_json_response()
