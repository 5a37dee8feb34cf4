"""Redis connection management.

Redis holds only the rate-limit counters: short-lived, shared by every
API instance, and safe to lose on restart.  When REDIS_URL is unset the
app runs with in-memory counters and no Redis server is needed.

The client is created in the app lifespan (lms_api/main.py) and kept on
``app.state.redis``; nothing here runs at import time.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def build_redis_client(redis_url: str | None) -> aioredis.Redis | None:  # type: ignore[type-arg]
    if not redis_url:
        logger.info("No REDIS_URL configured; rate limiting uses in-memory counters")
        return None
    return aioredis.from_url(
        redis_url,
        decode_responses=True,
        max_connections=20,
    )


async def redis_healthy(client: aioredis.Redis | None) -> bool:  # type: ignore[type-arg]
    if client is None:
        return False
    try:
        await client.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
    except (RedisError, OSError):
        logger.exception("Redis ping failed")
        return False
    return True
