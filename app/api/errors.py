"""
Exception Handlers

Maps the service's exceptions to HTTP responses in one place, so endpoints
stay free of try/except boilerplate.

Response body: {"err": <message>, "code": <error code>}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded as ThrottleExceeded

from app.core.exceptions import SlugShortenerError, ValidationError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"err": message, "code": code})


async def slug_shortener_error_handler(request: Request, exc: SlugShortenerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return error_response(exc.status_code, str(exc), exc.error_code)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed params or body: 400 instead of FastAPI's default 422."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return error_response(status.HTTP_400_BAD_REQUEST, details, ValidationError.error_code)


async def throttle_exceeded_handler(request: Request, exc: ThrottleExceeded) -> JSONResponse:
    """Per-IP request throttle tripped (slowapi)."""
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Rate limit exceeded: {exc.detail}",
        "request:throttled",
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "internal:unexpected_error",
    )


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SlugShortenerError, slug_shortener_error_handler)
    app.add_exception_handler(ThrottleExceeded, throttle_exceeded_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
