"""Global exception handlers for consistent error responses.

Every error leaves the service as
``{"error": {"code", "message", "request_id", "details?"}}``.

Status mapping:
- LimitExceededError, RateLimitedError -> 429 with Retry-After and
  RateLimit-* headers (for quota rejections, only when the route was rate
  limited; the headers then describe that route's window)
- ValidationAppError -> 400
- AuthenticationAppError -> 401
- PermissionAppError -> 403
- NotFoundAppError -> 404
- any other AppError -> 400
- unexpected exceptions (store outages included) -> 500, i.e. the request is
  not admitted
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vaultgate.core.config import settings
from vaultgate.core.errors import (
    AppError,
    AuthenticationAppError,
    LimitExceededError,
    NotFoundAppError,
    PermissionAppError,
    RateLimitedError,
    ValidationAppError,
)
from vaultgate.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (LimitExceededError, 429),
    (RateLimitedError, 429),
    (ValidationAppError, 400),
    (AuthenticationAppError, 401),
    (PermissionAppError, 403),
    (NotFoundAppError, 404),
)


def status_code_for(exc: AppError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error_content = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map domain errors to their HTTP status and the shared JSON shape.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitedError):
        headers = exc.headers() if settings.app.rate_limit_include_headers else {
            "Retry-After": str(exc.retry_after)
        }
    elif isinstance(exc, LimitExceededError):
        decision = getattr(request.state, "rate_limit", None)
        if decision is not None and settings.app.rate_limit_include_headers:
            headers = decision.quota_rejection_headers()

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/query validation failures in the shared shape."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(errors)},
    )
    return JSONResponse(
        status_code=400,
        content=_error_body(
            "invalid_request",
            "Request validation failed.",
            {"context": {"errors": errors}},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    No implementation details are returned to the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
