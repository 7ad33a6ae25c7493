"""Base storage adapter"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class StorageAdapter(ABC):
    """
    Cache interface

    Values are JSON-compatible. A cache miss and a cache failure look the
    same to callers: ``None``.
    """

    @abstractmethod
    async def get_cache(self, key: str) -> Optional[Any]:
        """Get cached value"""
        pass

    @abstractmethod
    async def set_cache(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set cached value with TTL (adapter default when None)"""
        pass

    @abstractmethod
    async def delete_cache(self, key: str) -> None:
        """Delete cached value"""
        pass

    async def close(self) -> None:
        """Release connections; nothing to release by default"""
        pass
