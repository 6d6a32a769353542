# config/cache.py
"""Process-wide Redis client, only created when the redis admission backend is on."""
import asyncio
import logging
from typing import Optional
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError
from config.settings import settings

logger = logging.getLogger(__name__)

_client: Optional[Redis] = None
_lock = asyncio.Lock()


async def get_redis(url: Optional[str] = None) -> Redis:
    global _client
    if _client is not None:
        return _client
    async with _lock:
        if _client is None:
            url = url or settings.REDIS_URL
            if not url:
                raise RuntimeError("REDIS_URL is not configured")
            client = from_url(
                url,
                decode_responses=False,
                socket_keepalive=True,
                socket_timeout=settings.STORE_TIMEOUT_SECONDS,
                socket_connect_timeout=settings.STORE_TIMEOUT_SECONDS,
                health_check_interval=30,
            )
            # Refuse to start with a rate limiter that cannot count.
            try:
                await client.ping()
            except RedisError:
                await client.aclose()
                logger.error("redis.connect.failed")
                raise
            _client = client
            logger.info("redis.connect.ok")
    return _client


async def close_redis() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
