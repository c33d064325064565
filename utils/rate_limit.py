"""
Request Throttling Middleware

Provides IP-level request throttling using Redis (production) or in-memory
(development). Uses slowapi for FastAPI-compatible rate limiting.

This guards endpoints against request floods before authentication runs.
The per-user correction quota is a separate component
(services.personalization.rate_limiter).

Usage:
    from utils.rate_limit import limiter, rate_limit_exceeded_handler

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from config.settings import settings
from utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Limiter Configuration
# =============================================================================

def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request.

    Handles X-Forwarded-For header for requests behind a proxy/load balancer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_storage_uri() -> str:
    """
    Get storage URI for the limiter.

    Uses Redis if configured, otherwise falls back to in-memory.
    """
    if settings.REDIS_URL:
        logger.info("Request throttling using Redis storage")
        return settings.REDIS_URL
    logger.info("Request throttling using in-memory storage")
    return "memory://"


# =============================================================================
# Limit Presets
# =============================================================================

RATE_LIMITS = {
    "auth": "10/minute",         # Login/register
    "corrections": "60/minute",  # Correction sync (per IP, before the per-user quota)
    "default": "200/minute",     # General endpoints
}


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[RATE_LIMITS["default"]],
    storage_uri=_get_storage_uri(),
)


# =============================================================================
# Exception Handler
# =============================================================================

async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded
) -> JSONResponse:
    """Handle throttled requests."""
    client_ip = get_client_ip(request)
    logger.warning(f"Request throttled for {client_ip} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitExceeded",
            "message": f"Too many requests. Limit: {exc.detail}",
            "retry_after": "60 seconds"
        },
        headers={"Retry-After": "60"}
    )


# =============================================================================
# Decorator Helpers
# =============================================================================

def limit_auth(func):
    """Apply auth throttle."""
    return limiter.limit(RATE_LIMITS["auth"])(func)


def limit_corrections(func):
    """Apply correction sync throttle."""
    return limiter.limit(RATE_LIMITS["corrections"])(func)
