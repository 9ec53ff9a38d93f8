"""
Business Exception Classes - Base Exception Definitions

Contains the business and infrastructure exception types raised by the
deployment engine and mapped to responses by the global handlers.
"""

from typing import Optional, Any, List


class BusinessException(Exception):
    """
    Business Logic Exception

    Used to handle exceptions in business logic. ``code`` doubles as the HTTP
    status returned to the caller.
    """

    def __init__(self, message: str, code: int = 400, data: Any = None):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(self.message)


class NotFoundError(BusinessException):
    """Resource Not Found Exception"""

    def __init__(self, message: str = "Resource not found", resource_type: Optional[str] = None, resource_id: Optional[str] = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message=message, code=404)


class ConflictError(BusinessException):
    """
    Conflict Exception

    Raised for reserved project names, names taken by another owner and
    similar naming collisions.
    """

    def __init__(self, message: str = "Resource conflict", data: Any = None):
        super().__init__(message=message, code=409, data=data)


class DeploymentRejectedError(BusinessException):
    """
    Deployment Rejected Exception

    Base class for input rejections. The deployment row (when one was
    allocated) has already been marked failed with ``message`` as its log.
    """

    def __init__(self, message: str, code: int = 400, data: Any = None, deployment_id: Optional[str] = None):
        self.deployment_id = deployment_id
        super().__init__(message=message, code=code, data=data)


class ContentRejectedError(DeploymentRejectedError):
    """Disallowed file types or a missing entry document"""

    def __init__(self, message: str, offending_paths: Optional[List[str]] = None, deployment_id: Optional[str] = None):
        self.offending_paths = offending_paths or []
        super().__init__(
            message=message,
            code=400,
            data={"offending_paths": self.offending_paths} if self.offending_paths else None,
            deployment_id=deployment_id,
        )


class QuotaExceededError(DeploymentRejectedError):
    """Per-file, per-deployment or per-user size cap violated"""

    def __init__(
        self,
        message: str,
        reason: str,
        limit_bytes: int,
        before_bytes: int,
        after_bytes: int,
        deployment_id: Optional[str] = None,
    ):
        self.reason = reason
        self.limit_bytes = limit_bytes
        self.before_bytes = before_bytes
        self.after_bytes = after_bytes
        super().__init__(
            message=message,
            code=413,
            data={
                "reason": reason,
                "limit_bytes": limit_bytes,
                "before_bytes": before_bytes,
                "after_bytes": after_bytes,
            },
            deployment_id=deployment_id,
        )


class SnapshotMissingError(BusinessException):
    """Rollback target has no snapshot objects; nothing was changed"""

    def __init__(self, message: str, deployment_id: Optional[str] = None, version: Optional[int] = None):
        self.deployment_id = deployment_id
        self.version = version
        super().__init__(message=message, code=400)


class StorageError(Exception):
    """
    Object Storage Exception

    Infrastructure failure talking to the object store (unreachable, bucket
    creation failed, listing failed).
    """

    def __init__(self, message: str, code: int = 500, operation: Optional[str] = None, key: Optional[str] = None):
        self.message = message
        self.code = code
        self.operation = operation
        self.key = key
        super().__init__(self.message)


class DatabaseException(Exception):
    """
    Database Exception

    Used to handle database operation related exceptions.
    """

    def __init__(self, message: str, code: int = 500, operation: Optional[str] = None):
        self.message = message
        self.code = code
        self.operation = operation
        super().__init__(self.message)


class PointerUpdateError(DatabaseException):
    """
    The active deployment pointer could not be moved

    Raised after a rollback already rewrote the live key-space, so object
    storage and metadata may disagree until the rollback is repeated.
    """

    def __init__(self, message: str, project_id: str, deployment_id: str):
        self.project_id = project_id
        self.deployment_id = deployment_id
        super().__init__(message=message, code=500, operation="set_active_deployment")


class DeadlineExceededError(Exception):
    """A deploy or rollback ran past its request deadline"""

    def __init__(self, message: str, timeout: float):
        self.message = message
        self.timeout = timeout
        super().__init__(self.message)
