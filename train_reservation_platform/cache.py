"""
Redis caching layer for seat availability listings.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import get_settings
from .models.seat import CarClass

logger = logging.getLogger(__name__)


class CacheKeyBuilder:
    """Helper class for building consistent cache keys."""

    @staticmethod
    def seat_class(car_class: str, version: int = 0) -> str:
        """Build cache key for a car class seat listing at a given version."""
        return f"seats:class:{car_class}:v{version}"

    @staticmethod
    def seat_class_version(car_class: str) -> str:
        """Build the key of the counter writers bump when a class changes."""
        return f"seats:class:{car_class}:version"


class RedisCache:
    """Redis cache manager with connection handling and operations."""

    def __init__(self):
        self.client: Optional[Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool and client."""
        settings = get_settings()

        self.pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            retry_on_timeout=True,
            socket_keepalive=True,
            health_check_interval=30
        )
        client = Redis(connection_pool=self.pool)

        try:
            await client.ping()
        except RedisError as e:
            # Seat listings are served straight from the database instead
            logger.warning("Redis unavailable, caching disabled: %s", e)
            await self.pool.disconnect()
            self.pool = None
            return

        self.client = client
        logger.info("Redis cache initialized successfully")

    async def close(self) -> None:
        """Close Redis connections."""
        if self.client:
            await self.client.aclose()
            self.client = None
        if self.pool:
            await self.pool.disconnect()
            self.pool = None
        logger.info("Redis cache connections closed")

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.client:
            return None

        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value.decode("utf-8"))
            return None
        except (RedisError, ValueError) as e:
            logger.warning("Failed to get cache key %s: %s", key, e)
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self.client:
            return False

        try:
            serialized_value = json.dumps(value, default=str)
            if ttl:
                await self.client.setex(key, ttl, serialized_value)
            else:
                await self.client.set(key, serialized_value)
            return True
        except (RedisError, TypeError) as e:
            logger.warning("Failed to set cache key %s: %s", key, e)
            return False

    async def increment(self, key: str, amount: int = 1) -> Optional[int]:
        """
        Increment a numeric value in cache.

        Returns:
            New value after increment, or None if failed
        """
        if not self.client:
            return None

        try:
            return await self.client.incrby(key, amount)
        except RedisError as e:
            logger.warning("Failed to increment key %s: %s", key, e)
            return None

    async def get_version(self, key: str) -> int:
        """Read a version counter; a missing counter is version 0."""
        value = await self.get(key)
        return value if isinstance(value, int) else 0


# Global cache instance
cache = RedisCache()


async def init_cache() -> None:
    """Initialize the global cache instance."""
    await cache.initialize()


async def close_cache() -> None:
    """Close the global cache instance."""
    await cache.close()


def get_cache() -> RedisCache:
    """Get the global cache instance."""
    return cache


class CacheInvalidator:
    """Helper class for cache invalidation strategies."""

    @staticmethod
    async def invalidate_seat_caches(car_classes: Optional[list] = None) -> None:
        """
        Invalidate seat listings for the given classes (all when omitted).

        Bumping the version makes every listing cached under an older
        version unreachable, including one written by a reader that queried
        the database before the change committed.
        """
        classes = car_classes or list(CarClass)
        for car_class in classes:
            value = car_class.value if isinstance(car_class, CarClass) else str(car_class)
            await cache.increment(CacheKeyBuilder.seat_class_version(value))


# Cache TTL constants (in seconds)
class CacheTTL:
    """Cache TTL constants for different data types."""

    SEAT_CLASS = 30
