"""
Database Models

SQLAlchemy ORM models for the application.
"""

from .project import Project
from .deployment import Deployment, DeploymentStatus, DeploymentSource
from .reserved_name import ReservedName, DEFAULT_RESERVED_NAMES

__all__ = [
    "Project",
    "Deployment",
    "DeploymentStatus",
    "DeploymentSource",
    "ReservedName",
    "DEFAULT_RESERVED_NAMES",
]
