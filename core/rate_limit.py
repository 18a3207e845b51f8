"""Rate limiter shared by the authentication routes."""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config import settings
from core.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)


def client_address(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    return first or get_remote_address(request)


limiter = Limiter(key_func=client_address, enabled=settings.RATE_LIMIT_ENABLED)

# One budget per client for every authentication endpoint together
auth_limit = limiter.shared_limit(settings.AUTH_RATE_LIMIT, scope="auth")


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded for %s on %s", client_address(request), request.url.path)
    error = ServiceError(
        ErrorKind.RATE_LIMITED, "Too many requests. Please try again later.",
    )
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_dict()})
