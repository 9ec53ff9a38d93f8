"""
Services Module

业务逻辑服务层
"""

from .project_service import ProjectService
from .deployment_service import DeploymentService

__all__ = [
    "ProjectService",
    "DeploymentService",
]
