"""
Rate limiting using slowapi.

Endpoints decorated with these limits must accept a ``request: Request``
parameter.
"""
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from snti.config import settings
from snti.core.logging_utils import get_request_id, sanitize_log_message

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Client IP, honouring the first hop of X-Forwarded-For behind a proxy.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        sanitize_log_message(
            "Rate limit exceeded",
            Path=request.url.path,
            IP=get_client_ip(request),
            Limit=str(exc.detail),
            RequestID=get_request_id(request)
        )
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "message": "Demasiadas solicitudes, intenta de nuevo más tarde",
            "error": f"Límite: {exc.detail}",
        }
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Configure rate limiting for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting is disabled")
        return

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(
        f"Rate limiting enabled: default={settings.RATE_LIMIT_DEFAULT}, "
        f"auth={settings.RATE_LIMIT_AUTH}, uploads={settings.RATE_LIMIT_UPLOADS}"
    )


def rate_limit_auth():
    """Rate limit decorator for the login endpoint."""
    return limiter.limit(settings.RATE_LIMIT_AUTH)


def rate_limit_uploads():
    """Rate limit decorator for endpoints that accept files."""
    return limiter.limit(settings.RATE_LIMIT_UPLOADS)
