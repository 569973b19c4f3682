"""
Fixed-window rate limiters for the refinement endpoint.

Every limiter exposes one coroutine, `try_acquire()`, which returns True when
the caller may proceed and False when the current window is exhausted.
"""

import time
import logging
from typing import Awaitable, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from novel_refiner.core.config import Settings
from novel_refiner.db.redis import get_redis

logger = logging.getLogger(__name__)


class RateLimiter:
    """Base class for rate limiters."""

    async def try_acquire(self) -> bool:
        raise NotImplementedError


class UnlimitedRateLimiter(RateLimiter):
    """Used when rate limiting is disabled."""

    async def try_acquire(self) -> bool:
        return True


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local fixed window counter.

    The window opens on the first request after the previous one has
    elapsed. State is lost on restart and is not shared between processes.
    No awaits happen between reading and updating the counter, so the
    event loop serializes callers.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self.count = 0
        self.window_start: Optional[float] = None

    async def try_acquire(self) -> bool:
        now = self._clock()

        if self.window_start is None or now - self.window_start >= self.window_seconds:
            self.count = 0
            self.window_start = now

        if self.count >= self.max_requests:
            logger.warning(
                f"Rate limit reached: {self.count}/{self.max_requests} "
                f"in {self.window_seconds}s window"
            )
            return False

        self.count += 1
        return True


class RedisRateLimiter(RateLimiter):
    """
    Fixed window counter shared through Redis.

    The key is incremented on every attempt and given an expiry on the first
    one, so the window starts at the first request. A key found without a
    TTL gets one again. When Redis is unavailable the request is allowed.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        key: str = "rate_limit:refine",
        client_factory: Callable[[], Awaitable[Optional[Redis]]] = get_redis,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key = key
        self._client_factory = client_factory

    async def try_acquire(self) -> bool:
        try:
            client = await self._client_factory()
            if client is None:
                return True

            count = await client.incr(self.key)

            # Re-arm the expiry if an earlier EXPIRE never landed
            if count == 1 or await client.ttl(self.key) == -1:
                await client.expire(self.key, self.window_seconds)

            if count > self.max_requests:
                logger.warning(f"Rate limit reached for '{self.key}': {count}/{self.max_requests}")
                return False
            return True

        except RedisError as e:
            logger.warning(f"Rate limit check error: {str(e)}")
            return True


def create_rate_limiter(settings: Settings) -> RateLimiter:
    """Build the limiter selected by the settings."""
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting disabled")
        return UnlimitedRateLimiter()

    if settings.RATE_LIMIT_BACKEND == "redis":
        logger.info(
            f"Using Redis rate limiter: {settings.RATE_LIMIT_MAX_REQUESTS} "
            f"requests per {settings.RATE_LIMIT_WINDOW_SECONDS}s"
        )
        return RedisRateLimiter(
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            key=settings.RATE_LIMIT_KEY,
        )

    logger.info(
        f"Using in-memory rate limiter: {settings.RATE_LIMIT_MAX_REQUESTS} "
        f"requests per {settings.RATE_LIMIT_WINDOW_SECONDS}s"
    )
    return InMemoryRateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
