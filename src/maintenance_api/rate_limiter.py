"""
Request throttling for the scheduling API
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from maintenance_api.config import settings

logger = logging.getLogger(__name__)

# Per-client limits; storage is process local, so each worker counts separately
limiter = Limiter(
    key_func=get_remote_address,
    headers_enabled=False,
)

RATE_LIMITS = {
    # Every call re-reads the plant and recomputes the whole day
    "/api/schedule/daily": settings.schedule_rate_limit,
    "/health": settings.health_rate_limit,
    "/": settings.health_rate_limit,
}


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Reply with the same error body shape as the other handlers"""
    logger.warning(
        f"Rate limit hit by {get_remote_address(request)} on {request.url.path}: "
        f"{exc.detail}"
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": f"Rate limit exceeded: {exc.detail}",
            "error_code": "RATE_LIMITED",
            "path": str(request.url),
        },
    )


def configure_rate_limiting(app):
    """Attach the limiter and its 429 handler to the application"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    for path, limit in RATE_LIMITS.items():
        logger.info(f"Rate limit {path}: {limit}")
    return limiter
