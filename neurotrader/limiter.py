from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from slowapi.wrappers import LimitGroup
import logging

from neurotrader.config import settings

logger = logging.getLogger(__name__)

API_SCOPE = "api"

# RATE_LIMIT_CHAT is applied to the chat-send route through its decorator
limiter = Limiter(
    key_func=get_remote_address,
    strategy="moving-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)

# One budget per client IP, shared by every /api route
api_limits = LimitGroup(
    settings.RATE_LIMIT_DEFAULT,
    get_remote_address,
    API_SCOPE,
    False,
    None,
    None,
    None,
    1,
    False,
)


def enforce_api_limit(request: Request):
    """Count the request against the caller's shared /api budget"""
    if not limiter.enabled:
        return
    key = get_remote_address(request)
    for limit in api_limits:
        if not limiter.limiter.hit(limit.limit, key, API_SCOPE):
            logger.warning(f"API rate limit {limit.limit} exceeded by {key}")
            raise RateLimitExceeded(limit)
