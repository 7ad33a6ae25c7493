"""
NFT Gallery - NFT aggregation and query layer over an indexing API
"""

__version__ = "1.0.0"
__author__ = "NFT Gallery Team"

from .engine import AggregationEngine
from .errors import InvalidArgumentError, NFTGalleryError, NormalizationError, UpstreamError
from .market import SyntheticMarket
from .models import Collection, Item, ItemPage, QueryParams, TransactionReceipt
from .networks import NetworkResolver
from .simulator import ActionSimulator

__all__ = [
    "AggregationEngine",
    "ActionSimulator",
    "Collection",
    "InvalidArgumentError",
    "Item",
    "ItemPage",
    "NFTGalleryError",
    "NetworkResolver",
    "NormalizationError",
    "QueryParams",
    "SyntheticMarket",
    "TransactionReceipt",
    "UpstreamError",
]
