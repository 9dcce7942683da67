from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

RATE_LIMIT_MESSAGE = "Too many verification attempts, please try again later"


def auth_rate_limit() -> str:
    # read per request so a changed setting applies without re-decorating routes
    return settings.AUTH_RATE_LIMIT


# per client IP, in-memory storage
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
