"""Exception handlers for the FastAPI application.

Product endpoints answer store failures with ``{"error", "details"}``; every
other error uses ``{"error_code", "message", "details"}``.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.exceptions import AppException, ErrorCode, StoreReadError

logger = structlog.get_logger()


def _error_response(
    status_code: int, error_code: str, message: Any, details: Any = None
) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message, "details": details},
    )


async def store_read_error_handler(request: Request, exc: StoreReadError) -> ORJSONResponse:
    logger.error("store_read_failed", message=exc.message, details=exc.details)
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details},
    )


async def app_exception_handler(request: Request, exc: AppException) -> ORJSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("app_exception", error_code=exc.error_code.value, message=exc.message)
    return _error_response(exc.status_code, exc.error_code.value, exc.message, exc.details)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    return _error_response(exc.status_code, "HTTP_ERROR", exc.detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    errors = exc.errors()
    logger.info("validation_error", errors=errors)
    return _error_response(
        422,
        ErrorCode.VALIDATION_ERROR.value,
        "Request validation failed",
        [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in errors
        ],
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Last resort; hides the message outside development."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=request_id,
        exc_info=True,
    )
    message = "An unexpected error occurred" if settings.is_production else str(exc)
    return _error_response(
        500, ErrorCode.INTERNAL_ERROR.value, message, {"request_id": request_id}
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""
    app.add_exception_handler(StoreReadError, store_read_error_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
