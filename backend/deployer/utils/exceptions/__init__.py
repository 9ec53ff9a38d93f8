"""
Exception Classes

Contains all custom exception types for the application.
"""

from .base_exceptions import (
    BusinessException,
    NotFoundError,
    ConflictError,
    DeploymentRejectedError,
    ContentRejectedError,
    QuotaExceededError,
    SnapshotMissingError,
    StorageError,
    DatabaseException,
    PointerUpdateError,
    DeadlineExceededError,
)

__all__ = [
    "BusinessException",
    "NotFoundError",
    "ConflictError",
    "DeploymentRejectedError",
    "ContentRejectedError",
    "QuotaExceededError",
    "SnapshotMissingError",
    "StorageError",
    "DatabaseException",
    "PointerUpdateError",
    "DeadlineExceededError",
]
