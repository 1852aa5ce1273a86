"""Shared Redis connection for cross-instance rate-limit counters.

Balances are never cached here; every balance read goes to PostgreSQL.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Lazily build the process-wide client (connections open on first command)."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            health_check_interval=30,
        )
    return _client


async def ping_redis() -> None:
    """Fail fast at startup if Redis is unreachable."""
    client = await get_redis()
    await client.ping()


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
