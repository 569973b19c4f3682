"""
Redis client configuration for the shared rate-limit counter.
Provides an async Redis client with connection pooling.
"""

import time
from typing import Optional
from redis.asyncio import Redis, ConnectionPool
from redis.exceptions import RedisError
import logging

from novel_refiner.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# REDIS CLIENT
# ============================================================================

class RedisClient:
    """
    Async Redis client with connection pooling.
    Singleton pattern for application-wide use.
    """
    _instance: Optional[Redis] = None
    _pool: Optional[ConnectionPool] = None
    _failed_at: Optional[float] = None

    @classmethod
    async def get_client(cls) -> Optional[Redis]:
        """
        Get or create Redis client instance.

        After a failed connect, no new attempt is made until
        REDIS_RETRY_BACKOFF_SECONDS have passed.

        Returns:
            Async Redis client, or None when Redis is unreachable
        """
        if cls._instance is None:
            if (
                cls._failed_at is not None
                and time.monotonic() - cls._failed_at < settings.REDIS_RETRY_BACKOFF_SECONDS
            ):
                return None

            try:
                cls._pool = ConnectionPool.from_url(
                    settings.REDIS_URL,
                    max_connections=settings.REDIS_MAX_CONNECTIONS,
                    socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                    socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                    decode_responses=True,
                    password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                )

                cls._instance = Redis(connection_pool=cls._pool)

                # Test connection
                await cls._instance.ping()

                cls._failed_at = None
                logger.info(
                    f"Redis client initialized successfully "
                    f"(max_connections={settings.REDIS_MAX_CONNECTIONS})"
                )

            except RedisError as e:
                logger.error(f"Failed to connect to Redis: {str(e)}")
                logger.warning(
                    f"Rate limiting will allow all requests; retrying Redis in "
                    f"{settings.REDIS_RETRY_BACKOFF_SECONDS}s"
                )
                if cls._pool:
                    await cls._pool.disconnect()
                cls._instance = None
                cls._pool = None
                cls._failed_at = time.monotonic()

        return cls._instance

    @classmethod
    async def close(cls):
        """Close Redis connection."""
        if cls._instance:
            await cls._instance.aclose()
            if cls._pool:
                await cls._pool.disconnect()
            logger.info("Redis connections closed")
            cls._instance = None
            cls._pool = None
        cls._failed_at = None


async def get_redis() -> Optional[Redis]:
    """
    Get the shared Redis client.

    Returns:
        Redis client or None if not available
    """
    return await RedisClient.get_client()


# ============================================================================
# INITIALIZATION
# ============================================================================

async def initialize_redis():
    """
    Initialize Redis connection.
    Called during application startup when the Redis rate limiter is used.
    """
    logger.info("Initializing Redis connection...")
    client = await RedisClient.get_client()

    if client:
        logger.info("✅ Redis initialization successful")
    else:
        logger.warning("⚠️  Redis not available, rate limiting fails open")


async def close_redis():
    """
    Close Redis connection.
    Called during application shutdown.
    """
    await RedisClient.close()
