"""
Unified Response Model

Provides the standardized ``{code, message, data}`` envelope for all endpoints.
"""

from typing import Any, List, Optional
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from .response_code import ResponseCode


class BaseResponse(BaseModel):
    """Base response model for all API endpoints"""

    code: int = Field(200, description="API status code")
    message: str = Field("success", description="API status message")
    data: Optional[Any] = Field(None, description="API data")

    model_config = {
        "arbitrary_types_allowed": True,
        "json_schema_extra": {
            "example": {
                "code": 200,
                "message": "success",
                "data": None
            }
        }
    }

    @property
    def ok(self) -> bool:
        return 200 <= self.code < 300

    @classmethod
    def _build(cls, code: int, data: Any = None, message: Optional[str] = None):
        if message is None:
            message = ResponseCode.get_message(code)
        return cls(code=code, message=message, data=data)

    def to_json_response(self) -> JSONResponse:
        """Render the envelope with the matching HTTP status"""
        status_code = self.code if 100 <= self.code < 600 else ResponseCode.INTERNAL_SERVER_ERROR
        return JSONResponse(status_code=status_code, content=self.model_dump(mode="json"))

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.SUCCESS, data, message)

    @classmethod
    def created(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.CREATED, data, message)

    @classmethod
    def error(cls, data: Optional[Any] = None, message: str = None, code: int = None):
        return cls._build(code or ResponseCode.INTERNAL_SERVER_ERROR, data, message)

    @classmethod
    def from_exception(cls, exc: Exception, code: Optional[int] = None):
        """Envelope for a BusinessException or an infrastructure error"""
        return cls._build(
            code or getattr(exc, "code", None) or ResponseCode.INTERNAL_SERVER_ERROR,
            getattr(exc, "data", None),
            getattr(exc, "message", None) or str(exc),
        )

    @classmethod
    def not_found(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.NOT_FOUND, data, message)

    @classmethod
    def unauthorized(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.UNAUTHORIZED, data, message)

    @classmethod
    def forbidden(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.FORBIDDEN, data, message)

    @classmethod
    def bad_request(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.BAD_REQUEST, data, message)

    @classmethod
    def validation_error(cls, data: Optional[Any] = None, message: str = None):
        return cls._build(ResponseCode.UNPROCESSABLE_ENTITY, data, message)


class ListResponse(BaseResponse):
    """Response model for list endpoints"""

    @classmethod
    def success(cls, items: List[Any], total: int = None, message: str = None):
        """
        Create success response for list data

        Args:
            items: List of items
            total: Total count, defaults to len(items)
            message: Custom message
        """
        data = {
            "items": items,
            "total": total if total is not None else len(items)
        }
        return cls._build(ResponseCode.SUCCESS, data, message)
