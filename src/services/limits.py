"""Rate limiting and idempotency helpers."""
from __future__ import annotations

import time
from typing import Optional

import redis.asyncio as redis

from src.core.config import settings
from src.core.exceptions import DuplicateRequestError, RateLimitExceededError

_redis_client: redis.Redis | None = None


async def _get_client() -> redis.Redis:
    """Return a cached Redis client instance."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            str(settings.REDIS_URI), decode_responses=True
        )
    return _redis_client


async def close_client() -> None:
    global _redis_client
    if _redis_client is not None and hasattr(_redis_client, "aclose"):
        await _redis_client.aclose()
    _redis_client = None


async def check_rate_limit(client_key: str, scope: str = "quote") -> None:
    """Enforce a fixed one-minute window per client and scope."""

    client = await _get_client()
    minute_window = int(time.time() // 60)
    key = f"rl:{scope}:{client_key}:{minute_window}"
    current = await client.incr(key)
    if current == 1:
        await client.expire(key, 60)
    if current > settings.limits.rate_limit_rpm:
        raise RateLimitExceededError("Rate limit exceeded")


async def ensure_idempotent(client_key: str, key: Optional[str]) -> None:
    """Reject duplicate submissions sharing the same idempotency key."""

    if not key:
        return
    client = await _get_client()
    redis_key = f"idemp:{client_key}:{key}"
    was_set = await client.set(
        redis_key, "1", ex=settings.limits.idempotency_ttl_seconds, nx=True
    )
    if not was_set:
        raise DuplicateRequestError("Duplicate request (idempotency)")
