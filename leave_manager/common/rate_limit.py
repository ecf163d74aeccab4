"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance wired into the FastAPI app in
main.py through SlowAPIMiddleware, so the default limit applies to every
route. Individual routes can override with @limiter.limit("N/period").
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leave_manager.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT],
)
