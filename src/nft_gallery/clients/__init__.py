"""API clients for NFT indexing providers"""

from .base import BaseAPIClient
from .alchemy import AlchemyClient

__all__ = ["AlchemyClient", "BaseAPIClient"]
