"""Redis storage adapter"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from loguru import logger

from .base import StorageAdapter
from ..config import Config


class RedisStorage(StorageAdapter):
    """Redis-based storage adapter"""

    def __init__(self, config: Config):
        if not config.redis_url:
            raise ValueError("Redis URL not configured")
        self.config = config
        self.redis_client: Optional[Any] = None

    async def _ensure_connected(self):
        """Ensure Redis connection is established"""
        if self.redis_client is None:
            self.redis_client = redis.from_url(self.config.redis_url, decode_responses=True)

    async def get_cache(self, key: str) -> Optional[Any]:
        """Get cached value from Redis"""
        try:
            await self._ensure_connected()
            value = await self.redis_client.get(key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, ValueError) as e:
            logger.debug(f"Redis get_cache error: {e}")
            return None

    async def set_cache(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set cached value in Redis with TTL"""
        try:
            await self._ensure_connected()
            serialized = json.dumps(value, default=str)
            await self.redis_client.setex(key, ttl or self.config.cache_ttl, serialized)
        except redis.RedisError as e:
            logger.debug(f"Redis set_cache error: {e}")

    async def delete_cache(self, key: str) -> None:
        """Delete cached value from Redis"""
        try:
            await self._ensure_connected()
            await self.redis_client.delete(key)
        except redis.RedisError as e:
            logger.debug(f"Redis delete_cache error: {e}")

    async def close(self):
        """Close Redis connection"""
        if self.redis_client is not None:
            await self.redis_client.aclose()
            self.redis_client = None
