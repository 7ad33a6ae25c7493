"""Storage adapters for collection caching"""

from typing import Optional

from .base import StorageAdapter
from .memory import MemoryStorage
from .redis_adapter import RedisStorage

__all__ = ["MemoryStorage", "RedisStorage", "StorageAdapter", "get_storage_adapter"]


def get_storage_adapter(config) -> Optional[StorageAdapter]:
    """Get appropriate storage adapter based on config (None disables caching)"""
    if config.cache_type == "redis" and config.redis_url:
        return RedisStorage(config)
    if config.cache_type == "memory":
        return MemoryStorage(config)
    return None
