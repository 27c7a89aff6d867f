"""Redis client for shared rate-limit buckets.

Configured from REDIS_URL exactly the way engine.py handles
DATABASE_URL: a client when the URL is set, None otherwise.  With no
Redis every API instance keeps its own in-memory buckets, which is only
correct for a single-process deployment.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Ping on startup, close the pool on shutdown.

    An unreachable Redis is logged but does not block startup; rate
    limit checks will fail per request until it comes back.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, rate limiting is per-process")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except (RedisError, OSError):
        logger.exception("Redis connection failed on startup")

    try:
        yield
    finally:
        await redis_pool.aclose()
        logger.info("Redis connection pool closed")
