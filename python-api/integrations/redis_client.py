"""
Redis connection pool

Shared by the rate limiter and the socket presence registry when
REDIS_URL is configured.
"""

import logging
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_pool: Optional[redis.Redis] = None


async def init_redis(url: str) -> redis.Redis:
    """Initialize the Redis connection pool."""
    global _pool
    _pool = redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )
    logger.info("Redis connection pool initialized")
    return _pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None
        logger.info("Redis connection pool closed")


def get_redis() -> Optional[redis.Redis]:
    """Return the pool, or None when Redis is not configured."""
    return _pool
