"""
Submission rate limiting using Redis.

Fixed window per client key:

    INCR  rsvp:rate:{client}:{window}
    EXPIRE rsvp:rate:{client}:{window} {window_seconds}   (first hit only)

Circuit Breaker Pattern:
  On Redis failure, the limiter "fails open" (admits the request).
  A Redis outage must not block registrations: the database, not the limiter,
  protects invitations and capacity. The gauge stays at 1 until Redis answers again.
"""

import time
from typing import Optional

from fastapi import Depends, Request
import redis.asyncio as redis

from app.core.config import get_settings
from app.core.exceptions import RateLimitExceeded
from app.core.logging import get_logger
from app.core.metrics import rate_limited_requests, redis_circuit_breaker_open, redis_connection_errors
from app.infrastructure.redis_client import get_redis

logger = get_logger(__name__)


class SubmissionRateLimiter:
    def __init__(self, client: Optional[redis.Redis], limit: int, window_seconds: int, prefix: str = "rsvp:rate"):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _key(self, client_key: str, now: float) -> str:
        window = int(now // self.window_seconds)
        return f"{self.prefix}:{client_key}:{window}"

    async def hit(self, client_key: str, now: Optional[float] = None) -> bool:
        """
        Count one attempt.

        Returns:
            True if admitted, False if over the limit for this window
        """
        if self.client is None:
            return True

        key = self._key(client_key, time.time() if now is None else now)
        try:
            count = await self.client.incr(key)
            if count == 1:
                await self.client.expire(key, self.window_seconds)
        except redis.RedisError as e:
            redis_connection_errors.inc()
            redis_circuit_breaker_open.set(1)
            logger.warning("rate_limiter_fail_open", error=str(e))
            return True

        redis_circuit_breaker_open.set(0)
        return count <= self.limit


async def get_rate_limiter() -> SubmissionRateLimiter:
    settings = get_settings()
    client = await get_redis() if settings.RATE_LIMIT_ENABLED else None
    return SubmissionRateLimiter(client, settings.RSVP_RATE_LIMIT, settings.RSVP_RATE_WINDOW_SECONDS)


async def enforce_submission_rate_limit(
    request: Request,
    limiter: SubmissionRateLimiter = Depends(get_rate_limiter),
) -> None:
    """FastAPI dependency guarding the submit endpoint."""
    client_key = request.client.host if request.client else "unknown"
    if not await limiter.hit(client_key):
        rate_limited_requests.inc()
        logger.warning("rate_limited", client=client_key)
        raise RateLimitExceeded()
