"""Global exception handlers for consistent error responses.

Design:
- RateLimitExceededError → the 429 built by ``rate_limit_response``
- Other AppError subclasses → their ``status_code`` with a JSON error envelope
- Unexpected Exception → generic 500 (safety net, nothing leaked)
- Every response carries the CORS headers
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from resume_api.adapters.rate_limit.base import now_ms
from resume_api.core.cors import cors_headers
from resume_api.core.errors import AppError, RateLimitExceededError
from resume_api.core.logging import get_request_id
from resume_api.core.rate_limit import rate_limit_response

logger = logging.getLogger(__name__)


async def rate_limit_error_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """Return the throttling response verbatim."""
    return rate_limit_response(cors_headers(), exc.reset_at, clock=exc.clock or now_ms)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Response body:
        {"error": {"code", "message", "request_id", "details"?}}

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the error's status code.
    """
    status_code = exc.status_code

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=cors_headers(),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging while returning a generic message, so no
    stack trace or exception text reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
        headers=cors_headers(),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Starlette picks the most specific handler by walking the exception's MRO,
    so the rate limit handler wins over the AppError one.
    """
    app.exception_handler(RateLimitExceededError)(rate_limit_error_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
