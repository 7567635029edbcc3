"""Rate limiting dependency for FastAPI routes.

A dependency rather than middleware so only the routes that declare it
are limited (sign-in), and each can carry its own bucket size.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from practice_orgs.core.metrics import RATE_LIMIT_HITS
from practice_orgs.db.redis import redis_pool
from practice_orgs.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

rate_limiter: RateLimiter
if redis_pool is not None:
    rate_limiter = RedisRateLimiter(redis_pool)
else:
    rate_limiter = InMemoryRateLimiter()


def require_rate_limit(config: RateLimitConfig = RateLimitConfig()):
    """Dependency factory: enforce a token bucket per client IP.

    Usage::

        @router.post("/sign-in", dependencies=[Depends(require_rate_limit())])
    """

    async def _check(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        key = f"{request.url.path}:ip:{client_ip}"
        result = await rate_limiter.check(key, config)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(key_type="ip").inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Muitas tentativas. Tente novamente em instantes.",
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check
