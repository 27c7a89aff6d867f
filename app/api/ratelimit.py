"""Rate limiting for activity submission routes.

Buckets are keyed by the user the activity is submitted for, so one
chatty client cannot starve other users sharing its IP.  Requests with
no user in scope fall back to the client IP.

X-RateLimit-* headers go on every checked response, not only on 429s,
so clients can throttle themselves before being rejected.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, Request, Response, status

from app.core.config import SETTINGS
from app.core.metrics import RATE_LIMIT_HITS
from app.db.redis import redis_pool
from app.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

if redis_pool is not None:
    _rate_limiter: RateLimiter = RedisRateLimiter(redis_pool)
else:
    _rate_limiter = InMemoryRateLimiter()


ACTIVITY_LIMIT = RateLimitConfig(capacity=SETTINGS.activity_rate_limit, refill_rate=2.0)


async def enforce_rate_limit(
    request: Request,
    response: Response,
    *,
    user_id: UUID | None = None,
    config: RateLimitConfig = ACTIVITY_LIMIT,
) -> None:
    """Spend one token for this request or raise 429."""
    key = _build_key(request, user_id)
    result = await _rate_limiter.check(key, config)

    if not result.allowed:
        RATE_LIMIT_HITS.labels(key_type=key.split(":", 1)[0]).inc()
        logger.warning("Rate limit exceeded key=%s", key)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={
                "Retry-After": str(int(result.retry_after) + 1),
                "X-RateLimit-Limit": str(result.limit),
                "X-RateLimit-Remaining": "0",
            },
        )

    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)


def _build_key(request: Request, user_id: UUID | None) -> str:
    if user_id is not None:
        return f"user:{user_id}"
    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
