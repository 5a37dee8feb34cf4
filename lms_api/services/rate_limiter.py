"""Fixed-window request counting.

Each caller gets a counter per window (``window_seconds`` long).  The
first request in a window creates the counter with a TTL equal to the
window; every request increments it; once the count passes ``limit`` the
request is rejected until the counter expires.

A fixed window lets a client send up to twice the limit across a window
boundary.  For write traffic from students and teachers that is an
acceptable trade for a single INCR per request.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of one check.

    retry_after is the number of seconds until the current window ends
    (0 when the request is allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    retry_after: float


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    limit: int = 60
    window_seconds: int = 60


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


def _result(count: int, config: RateLimitConfig, ttl: float) -> RateLimitResult:
    if count <= config.limit:
        return RateLimitResult(
            allowed=True,
            remaining=config.limit - count,
            limit=config.limit,
            retry_after=0,
        )
    return RateLimitResult(
        allowed=False,
        remaining=0,
        limit=config.limit,
        retry_after=max(ttl, 0),
    )


class InMemoryRateLimiter:
    """Per-process counters for dev and tests.

    With several API processes each keeps its own counts, so the
    effective limit is multiplied by the process count.
    """

    def __init__(self, clock=time.monotonic) -> None:
        # key -> (count, window_started_at)
        self._windows: dict[str, tuple[int, float]] = {}
        self._clock = clock

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = self._clock()
        count, started = self._windows.get(key, (0, now))
        if now - started >= config.window_seconds:
            count, started = 0, now

        count += 1
        self._windows[key] = (count, started)
        return _result(count, config, started + config.window_seconds - now)

    async def reset(self, key: str) -> None:
        self._windows.pop(key, None)


class RedisRateLimiter:
    """Counters shared by every API instance.

    INCR and EXPIRE run in one MULTI/EXEC pipeline so a counter is never
    left without a TTL.  EXPIRE uses NX so later requests do not push the
    end of the window out.
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        redis_key = f"ratelimit:{key}"
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, config.window_seconds, nx=True)
            pipe.ttl(redis_key)
            count, _, ttl = await pipe.execute()
        return _result(int(count), config, float(ttl))

    async def reset(self, key: str) -> None:
        await self._redis.delete(f"ratelimit:{key}")
