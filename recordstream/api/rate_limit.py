"""Rate limiting configuration for API endpoints.

Provides a shared Limiter instance that route modules can import
to apply per-endpoint rate limits. Opening a record stream holds a
server task for its whole duration, so the stream endpoint gets its own,
tighter limit (``settings.stream_rate_limit``).

Usage in route modules:
    from recordstream.api.rate_limit import limiter

    @router.get("/stream")
    @limiter.limit("10/minute")
    async def stream_records(request: Request, ...):
        ...
"""

from slowapi import Limiter
from starlette.requests import Request

from recordstream.settings import get_settings


def _get_real_client_ip(request: Request) -> str:
    """Extract the real client IP, respecting X-Forwarded-For from trusted proxies.

    Args:
        request: Starlette/FastAPI request object.

    Returns:
        Client IP address string.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For: client, proxy1, proxy2 - take the leftmost (client)
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "127.0.0.1"


def stream_rate_limit() -> str:
    """Current per-client limit for opening record streams."""
    return get_settings().stream_rate_limit


# key_func: Uses real client IP (supports X-Forwarded-For behind proxy)
# default_limits: Applied to all endpoints unless overridden by @limiter.limit()
limiter = Limiter(
    key_func=_get_real_client_ip,
    default_limits=["120/minute"],
)
