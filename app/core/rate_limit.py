"""
Request Throttling Configuration

Per-client-IP throttling for API endpoints, independent of the per-user
slug creation limit enforced by the slug service.

Design Decisions:
- Uses slowapi (lightweight, FastAPI-compatible)
- Separate budgets for read and write endpoints
- Can be switched off with THROTTLE_ENABLED=false (tests, local runs)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.setting import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.THROTTLE_ENABLED)

# Format: "count/period" (e.g., "60/minute" means 60 requests per minute)
THROTTLES = {
    "read": settings.THROTTLE_READ,
    "write": settings.THROTTLE_WRITE,
}
