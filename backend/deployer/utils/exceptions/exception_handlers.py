"""
Global Exception Handlers

Unified handling of all API exceptions to ensure consistent error response format.
"""

import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from deployer.config.settings import ServerConfig
from deployer.utils.model.response_model import BaseResponse
from deployer.utils.model.response_code import ResponseCode
from deployer.utils.exceptions.base_exceptions import (
    BusinessException,
    DatabaseException,
    DeadlineExceededError,
    StorageError,
)

logger = logging.getLogger(__name__)


def _json(status_code: int, response: BaseResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request parameter validation errors"""
    logger.warning(f"Validation error on {request.url}: {exc.errors()}")

    messages = []
    details = []
    for error in exc.errors():
        ctx = error.get("ctx")
        if isinstance(ctx, dict) and "error" in ctx:
            messages.append(str(ctx["error"]))
        else:
            messages.append(error["msg"])
        details.append({
            "loc": list(error["loc"]),
            "msg": error["msg"],
            "type": error["type"],
        })

    response = BaseResponse.validation_error(
        data={"details": details},
        message="; ".join(messages)
    )
    return _json(status.HTTP_422_UNPROCESSABLE_ENTITY, response)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions"""
    logger.warning(f"HTTP {exc.status_code} on {request.url}: {exc.detail}")

    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        response = BaseResponse.unauthorized(message=exc.detail)
    elif exc.status_code == status.HTTP_403_FORBIDDEN:
        response = BaseResponse.forbidden(message=exc.detail)
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        response = BaseResponse.not_found(message=exc.detail)
    elif exc.status_code == status.HTTP_400_BAD_REQUEST:
        response = BaseResponse.bad_request(message=exc.detail)
    else:
        response = BaseResponse.error(message=exc.detail, code=exc.status_code)

    return _json(exc.status_code, response)


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    """Handle business logic exceptions, using the exception code as HTTP status"""
    logger.warning(f"Business error on {request.url}: {exc.message}")

    response = BaseResponse.error(
        message=exc.message,
        data=getattr(exc, "data", None),
        code=exc.code,
    )
    return _json(exc.code, response)


async def infrastructure_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle object storage, database and deadline failures"""
    logger.error(f"Infrastructure error on {request.url}: {exc}", exc_info=True)

    if isinstance(exc, DeadlineExceededError):
        code = ResponseCode.GATEWAY_TIMEOUT
    else:
        code = ResponseCode.INTERNAL_SERVER_ERROR

    response = BaseResponse.error(message=str(exc), code=code)
    return _json(code, response)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions"""
    logger.error(f"Unhandled exception on {request.url}: {exc}", exc_info=True)

    if ServerConfig.DEBUG:
        message = f"Internal server error: {str(exc)}"
        data = {
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    else:
        message = "Internal server error, please try again later"
        data = None

    response = BaseResponse.error(
        message=message,
        data=data,
        code=ResponseCode.INTERNAL_SERVER_ERROR
    )
    return _json(status.HTTP_500_INTERNAL_SERVER_ERROR, response)


def register_exception_handlers(app):
    """
    Register all exception handlers

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(StorageError, infrastructure_exception_handler)
    app.add_exception_handler(DatabaseException, infrastructure_exception_handler)
    app.add_exception_handler(DeadlineExceededError, infrastructure_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
