"""
Redis caching layer for the read-side seat and parking maps.

The cache is advisory only. Admission control always reads the database, so
every operation here degrades to a miss instead of raising.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError
from redis.exceptions import ConnectionError as RedisConnectionError

from .config import get_settings

logger = logging.getLogger(__name__)


class CacheKeyBuilder:
    """Helper class for building consistent cache keys."""

    @staticmethod
    def show_detail(show_id: int) -> str:
        """Build cache key for show details."""
        return f"show:detail:{show_id}"

    @staticmethod
    def seat_map(show_id: int) -> str:
        """Build cache key for the booked seats of a show."""
        return f"seats:map:{show_id}"

    @staticmethod
    def parking_map(theatre_id: int) -> str:
        """Build cache key for the parking floors of a theatre."""
        return f"parking:map:{theatre_id}"


class RedisCache:
    """Redis cache manager with connection handling and operations."""

    def __init__(self):
        self.client: Optional[Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool and client."""
        settings = get_settings()

        try:
            self.pool = redis.ConnectionPool.from_url(
                settings.redis_url,
                max_connections=settings.redis_max_connections,
                retry_on_timeout=True,
                health_check_interval=30
            )
            self.client = Redis(connection_pool=self.pool)

            await self.client.ping()
            logger.info("Redis cache initialized successfully")

        except (RedisConnectionError, OSError) as e:
            logger.warning("Redis unavailable, running without cache: %s", e)
            await self.close()

    async def close(self) -> None:
        """Close Redis connections."""
        if self.client:
            await self.client.close()
        if self.pool:
            await self.pool.disconnect()
        self.client = None
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
            logger.debug("Redis client not initialized, cache miss for %s", key)
            return None

        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value.decode('utf-8'))
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

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.client:
            return False

        try:
            await self.client.delete(key)
            return True
        except RedisError as e:
            logger.warning("Failed to delete cache key %s: %s", key, e)
            return False


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
    async def invalidate_seat_caches(show_id: int) -> None:
        """Invalidate seat-related caches for a show."""
        await cache.delete(CacheKeyBuilder.seat_map(show_id))
        await cache.delete(CacheKeyBuilder.show_detail(show_id))
        logger.debug(f"Invalidated seat caches for show {show_id}")

    @staticmethod
    async def invalidate_parking_caches(theatre_id: int) -> None:
        """Invalidate parking caches for a theatre."""
        await cache.delete(CacheKeyBuilder.parking_map(theatre_id))
        logger.debug(f"Invalidated parking caches for theatre {theatre_id}")


class CacheTTL:
    """Cache TTL constants for different data types."""

    SHOW_DETAIL = 600  # 10 minutes
    PARKING_MAP = 60  # 1 minute
