"""
Access Log Middleware

Logs every HTTP request with:
- Request method and path
- Response status code
- Processing time
- Client IP address

Uses Starlette's BaseHTTPMiddleware and standard Python logging; the log
format and level are configured in app.main.
"""

import logging
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("slug_shortener")


def get_client_ip(request: Request) -> str:
    """
    Client IP address, honoring X-Forwarded-For set by proxies and load
    balancers (first entry wins).
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    Middleware logging one line per request.

    Format: METHOD PATH STATUS_CODE PROCESS_TIME_MS CLIENT_IP
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        logger.info(
            f"{request.method} {request.url.path} "
            f"{response.status_code} {process_time*1000:.2f}ms "
            f"IP:{get_client_ip(request)}"
        )
        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response


def add_logging_middleware(app: FastAPI) -> None:
    app.add_middleware(AccessLogMiddleware)
