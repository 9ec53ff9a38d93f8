"""
Utilities Module

Common utilities, exceptions, and response models.
"""

from .exceptions import (
    BusinessException,
    DatabaseException,
    NotFoundError,
    ConflictError,
    StorageError,
)
from .model import (
    ResponseCode,
    BaseResponse,
    ListResponse,
)

__all__ = [
    # Exceptions
    "BusinessException",
    "DatabaseException",
    "NotFoundError",
    "ConflictError",
    "StorageError",
    # Response models
    "ResponseCode",
    "BaseResponse",
    "ListResponse",
]
