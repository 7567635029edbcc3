"""Token-bucket rate limiting for the sign-in endpoint.

Each client key owns a bucket of ``capacity`` tokens refilled at
``refill_rate`` tokens/second; a request spends one token or is rejected.
InMemoryRateLimiter serves a single process (dev, tests);
RedisRateLimiter shares buckets across every API instance.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    limit: int
    retry_after: float  # seconds until the next token, 0 when allowed


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    capacity: int = 10
    refill_rate: float = 0.17  # about one attempt every 6 seconds


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


def _spend(
    tokens: float | None, elapsed: float, config: RateLimitConfig
) -> tuple[float, RateLimitResult]:
    """Refill for ``elapsed`` seconds, then try to take one token.

    ``tokens`` is None for a key seen for the first time (full bucket).
    Returns the bucket's new level and the outcome.
    """
    if tokens is None:
        level = float(config.capacity)
    else:
        level = min(config.capacity, tokens + elapsed * config.refill_rate)

    if level < 1:
        return level, RateLimitResult(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=(1 - level) / config.refill_rate,
        )

    level -= 1
    return level, RateLimitResult(
        allowed=True, remaining=int(level), limit=config.capacity, retry_after=0
    )


class InMemoryRateLimiter:
    def __init__(self) -> None:
        # key -> (tokens, monotonic time of last update)
        self._buckets: dict[str, tuple[float, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = time.monotonic()
        previous = self._buckets.get(key)
        if previous is None:
            level, result = _spend(None, 0.0, config)
        else:
            level, result = _spend(previous[0], now - previous[1], config)
        self._buckets[key] = (level, now)
        return result

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


class RedisRateLimiter:
    """Redis-backed token bucket.

    The bucket lives in a hash under ``ratelimit:<key>``. Refill and spend
    run inside one Lua script so concurrent API instances never double-spend.
    """

    _PREFIX = "ratelimit:"

    # KEYS[1] bucket; ARGV capacity, refill_rate, now (epoch seconds)
    # Returns {allowed 0|1, remaining, retry_after_ms}
    _LUA_SCRIPT = """
    local capacity = tonumber(ARGV[1])
    local rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])

    local state = redis.call('HMGET', KEYS[1], 'tokens', 'ts')
    local level = capacity
    if state[1] then
        local elapsed = math.max(0, now - tonumber(state[2]))
        level = math.min(capacity, tonumber(state[1]) + elapsed * rate)
    end

    local allowed = 0
    local retry_ms = 0
    if level >= 1 then
        level = level - 1
        allowed = 1
    else
        retry_ms = math.ceil((1 - level) / rate * 1000)
    end

    redis.call('HSET', KEYS[1], 'tokens', level, 'ts', now)
    redis.call('EXPIRE', KEYS[1], math.ceil(capacity / rate) + 60)
    return {allowed, math.floor(level), retry_ms}
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        self._script = redis_client.register_script(self._LUA_SCRIPT)

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        allowed, remaining, retry_ms = await self._script(
            keys=[self._PREFIX + key],
            args=[config.capacity, config.refill_rate, time.time()],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining) if allowed else 0,
            limit=config.capacity,
            retry_after=retry_ms / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._PREFIX + key)
