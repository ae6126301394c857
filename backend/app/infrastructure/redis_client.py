"""
Async Redis client shared by the submission rate limiter and the health check.
Separated from business logic for clean architecture.

Redis is advisory here: when it is disabled or unreachable, callers get None and
carry on without it.
"""

from typing import Optional

import redis.asyncio as redis

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import redis_connection_errors

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        logger.info("redis_connected", url=settings.REDIS_URL)
        _redis_client = client

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_redis_status() -> dict:
    """Redis status for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled" if not get_settings().REDIS_ENABLED else "unavailable"}

    try:
        info = await client.info("server")
        return {"status": "connected", "version": info.get("redis_version")}
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
