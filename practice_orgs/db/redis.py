"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a shared client is created
at import time; otherwise ``redis_pool`` is None and consumers fall back to
in-memory implementations.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from practice_orgs.core.config import SETTINGS

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
    """Startup/shutdown hook for Redis, mirrors lifespan_db()."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured; rate limiting uses in-memory buckets")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info(
            "Redis connected: host=%s",
            redis_pool.connection_pool.connection_kwargs.get("host"),
        )
    except Exception:
        # Keep serving; only sign-in rate limiting depends on Redis.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
