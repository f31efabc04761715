"""
Shared slowapi rate limiter.

One instance serves the whole process so that the middleware mounted in
``accountguard.api.main`` and the per-route limits in
``accountguard.api.auth.routes`` count against the same store.

Two limits apply per client address:
- general: every route except ``/health``, counted across routes
- auth: one counter shared by ``/auth/register`` and ``/auth/login``,
  on top of the general one

Limits are read from Settings by ``configure_limiter`` when the app is built.
The general limit is enforced by SlowAPIMiddleware. The auth limit is a
decorator and must sit below the router decorator so the route runs it.
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from accountguard.config.settings import Settings

logger = logging.getLogger(__name__)

GENERAL_LIMIT_MESSAGE = "Too many requests, please try again later"
AUTH_LIMIT_MESSAGE = "Too many authentication attempts, please try again after 15 minutes"

_limits = {"general": "100/15minutes", "auth": "5/15minutes"}


def general_rate_limit() -> str:
    return _limits["general"]


def auth_rate_limit() -> str:
    return _limits["auth"]


limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[general_rate_limit],
    storage_uri="memory://",
)


def configure_limiter(settings: Settings) -> Limiter:
    """Apply the configured limits and clear all counters."""
    _limits["general"] = settings.general_rate_limit
    _limits["auth"] = settings.auth_rate_limit
    limiter.enabled = settings.rate_limit_enabled
    limiter.reset()
    if not settings.rate_limit_enabled:
        logger.warning("Request rate limiting is disabled")
    return limiter
