"""
Database Schemas

Pydantic models for request/response validation.
"""

from .project import (
    ProjectCreate,
    ProjectResponse,
    NameAvailabilityRequest,
    validate_project_name,
)
from .deployment import (
    DeployMeta,
    DeploymentCreate,
    DeploymentResponse,
    DeploymentSummary,
    DeployReport,
    RollbackReport,
)

__all__ = [
    # Project
    "ProjectCreate",
    "ProjectResponse",
    "NameAvailabilityRequest",
    "validate_project_name",
    # Deployment
    "DeployMeta",
    "DeploymentCreate",
    "DeploymentResponse",
    "DeploymentSummary",
    "DeployReport",
    "RollbackReport",
]
