"""Rate limiter configuration shared across all routers."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from .settings import settings


def get_rate_limit_key(request: Request) -> str:
    """
    Get rate limit key from request.

    Uses the first X-Forwarded-For address when behind a proxy, otherwise
    the direct client address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return "ip:" + forwarded.split(",")[0].strip()
    return "ip:" + get_remote_address(request)


limiter = Limiter(key_func=get_rate_limit_key)

# Admin login limit; create_app() replaces it with the app's own setting.
_login_rate_limit = settings.login_rate_limit


def configure_login_limit(value: str) -> None:
    global _login_rate_limit
    _login_rate_limit = value


def login_limit() -> str:
    """Evaluated by slowapi on every request."""
    return _login_rate_limit
