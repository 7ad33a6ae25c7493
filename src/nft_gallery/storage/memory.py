"""In-memory storage adapter"""

import asyncio
from typing import Any, Optional

from cachetools import TTLCache

from .base import StorageAdapter
from ..config import Config


class MemoryStorage(StorageAdapter):
    """In-memory TTL cache (per process)"""

    def __init__(self, config: Config, max_size: int = 10000):
        self.config = config
        self.cache: TTLCache = TTLCache(maxsize=max_size, ttl=config.cache_ttl)
        self._lock = asyncio.Lock()

    async def get_cache(self, key: str) -> Optional[Any]:
        """Get cached value"""
        async with self._lock:
            return self.cache.get(key)

    async def set_cache(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set cached value; TTLCache applies one TTL to every entry"""
        async with self._lock:
            self.cache[key] = value

    async def delete_cache(self, key: str) -> None:
        """Delete cached value"""
        async with self._lock:
            self.cache.pop(key, None)
