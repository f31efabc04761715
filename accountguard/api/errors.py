"""
Exception handlers - map domain and infrastructure errors to HTTP.

Every error body has the same shape: ``{"detail": ..., "code": ...}``.
Lockouts add ``retryAfterMinutes`` and rate limits add ``retryAfter`` (seconds).
Unexpected errors are reported as ``Internal`` with a generic message;
the exception text and traceback are added only when ``expose_errors``
is set (development).
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from psycopg import OperationalError
from psycopg_pool import PoolTimeout
from slowapi.errors import RateLimitExceeded

from accountguard.api.limiter import GENERAL_LIMIT_MESSAGE
from accountguard.domain.exceptions import AccountError, AccountLocked

logger = logging.getLogger(__name__)


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    body: dict = {"detail": str(exc), "code": exc.code}
    headers = None
    if isinstance(exc, AccountLocked):
        body["retryAfterMinutes"] = exc.remaining_minutes
        headers = {"Retry-After": str(exc.remaining_minutes * 60)}
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED and exc.code != "InvalidCredentials":
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or "body",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "code": "ValidationFailed", "errors": errors},
    )


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # Sync: SlowAPIMiddleware calls it directly for sync endpoints
    retry_after = exc.limit.limit.get_expiry()
    logger.warning(
        "Rate limit %s exceeded on %s %s", exc.limit.limit, request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": exc.detail if exc.limit.error_message else GENERAL_LIMIT_MESSAGE,
            "code": "RateLimited",
            "retryAfter": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


async def database_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Database unavailable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database connection failed", "code": "Internal"},
    )


def register_exception_handlers(app: FastAPI, *, expose_errors: bool = False) -> None:
    """
    Install the error mapping on ``app``.

    Args:
        app: FastAPI application
        expose_errors: Include exception text and traceback in 500 bodies
    """

    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        body: dict = {"detail": "Internal Server Error", "code": "Internal"}
        if expose_errors:
            body["error"] = str(exc)
            body["traceback"] = traceback.format_exception(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)

    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(PoolTimeout, database_unavailable_handler)
    app.add_exception_handler(Exception, internal_error_handler)
