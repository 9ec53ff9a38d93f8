"""
Database Repositories

Repository pattern implementation for data access.
"""

from .base_repository import BaseRepository
from .project_repository import ProjectRepository
from .deployment_repository import DeploymentRepository

__all__ = [
    "BaseRepository",
    "ProjectRepository",
    "DeploymentRepository",
]
