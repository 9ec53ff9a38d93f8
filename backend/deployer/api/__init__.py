"""
API Routers Module

FastAPI路由模块
"""

from .deploy_router import deploy_router
from .project_router import project_router, bucket_router
from .deployment_router import deployment_router

__all__ = [
    "deploy_router",
    "project_router",
    "bucket_router",
    "deployment_router",
]
