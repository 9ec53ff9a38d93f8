"""
Deployment Service

业务逻辑层 - deploy, rollback and deployment queries
"""

import logging
from typing import Optional, Sequence

from deployer.config.logging_config import log_print
from deployer.core.deploy_engine import DeployEngine
from deployer.core.upload_pipeline import SiteFile
from deployer.db.repository import DeploymentRepository
from deployer.db.schemas import DeployMeta, DeploymentResponse
from deployer.utils.exceptions import (
    BusinessException,
    DatabaseException,
    DeadlineExceededError,
    StorageError,
)
from deployer.utils.model.response_code import ResponseCode
from deployer.utils.model.response_model import BaseResponse, ListResponse

logger = logging.getLogger(__name__)


class DeploymentService:
    """
    部署服务类

    Wraps the deployment engine and turns its exceptions into response
    envelopes.
    """

    def __init__(self, engine: Optional[DeployEngine] = None, deployment_repo: Optional[DeploymentRepository] = None):
        self.engine = engine or DeployEngine()
        self.deployment_repo = deployment_repo or self.engine.deployment_repo

    @staticmethod
    def _failure(action: str, e: Exception) -> BaseResponse:
        if isinstance(e, BusinessException):
            return BaseResponse.from_exception(e)
        if isinstance(e, DeadlineExceededError):
            return BaseResponse.from_exception(e, code=ResponseCode.GATEWAY_TIMEOUT)
        if isinstance(e, (StorageError, DatabaseException)):
            logger.error(f"{action} failed: {e}")
            return BaseResponse.from_exception(e, code=ResponseCode.INTERNAL_SERVER_ERROR)
        logger.error(f"{action} failed: {e}", exc_info=True)
        return BaseResponse.error(message=f"{action} failed: {str(e)}")

    @log_print
    async def deploy(
        self,
        project_name: str,
        user_id: str,
        files: Sequence[SiteFile],
        meta: Optional[DeployMeta] = None,
    ):
        """上传并发布新版本"""
        try:
            report = await self.engine.deploy(project_name, user_id, files, meta)
            return BaseResponse.success(data=report, message=f"Deployed v{report.version}")
        except Exception as e:
            return self._failure("Deploy", e)

    @log_print
    async def rollback(self, project_id: str, deployment_id: str, user_id: str):
        """回滚到指定版本"""
        try:
            report = await self.engine.rollback(project_id, deployment_id, user_id)
            return BaseResponse.success(data=report, message=report.message)
        except Exception as e:
            return self._failure("Rollback", e)

    @log_print
    async def list_deployments(self, project_id: str, user_id: str):
        """获取项目的部署列表（按版本倒序）"""
        try:
            items = await self.engine.list_deployments(project_id, user_id)
            return ListResponse.success(items=items)
        except Exception as e:
            return self._failure("List deployments", e)

    @log_print
    async def get_deployment(self, deployment_id: str, user_id: str):
        """获取部署详情"""
        try:
            deployment = await self.deployment_repo.get_deployment_for_user(
                deployment_id=deployment_id,
                user_id=user_id,
            )
            if not deployment:
                return BaseResponse.not_found(message="Deployment not found")
            return BaseResponse.success(data=DeploymentResponse.model_validate(deployment))
        except Exception as e:
            return self._failure("Get deployment", e)

    @log_print
    async def get_deployment_logs(self, deployment_id: str, user_id: str):
        """获取部署日志"""
        try:
            deployment = await self.deployment_repo.get_deployment_for_user(
                deployment_id=deployment_id,
                user_id=user_id,
            )
            if not deployment:
                return BaseResponse.not_found(message="Deployment not found")
            return BaseResponse.success(data={"logs": deployment.logs or ""})
        except Exception as e:
            return self._failure("Get deployment logs", e)
