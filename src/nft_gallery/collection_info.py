"""Collection metadata resolution"""

import asyncio
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from .clients.base import BaseAPIClient
from .errors import UpstreamError
from .models import Collection
from .networks import CatalogEntry, NetworkResolver
from .storage import StorageAdapter
from .utils import as_text, convert_ipfs_to_http, dig, first_defined

UNKNOWN_SUPPLY = "???"


def supply_to_count(total_supply: str) -> int:
    """Integer item count from a supply string; 0 when not numeric"""
    try:
        return max(0, int(total_supply))
    except (TypeError, ValueError):
        return 0


def default_collection(address: str, entry: Optional[CatalogEntry] = None) -> Collection:
    """Synthetic record substituted when a collection cannot be resolved"""
    name = entry.name if entry else "Unknown Collection"
    return Collection(
        address=address,
        name=name,
        symbol=entry.symbol if entry else "NFT",
        total_supply=UNKNOWN_SUPPLY,
        item_count=0,
        image_url="",
        banner_url="",
        description=f"{name} is an NFT collection.",
    )


def build_collection(
    address: str,
    contract: Dict[str, Any],
    sample: Optional[Dict[str, Any]],
    entry: Optional[CatalogEntry] = None,
) -> Collection:
    """
    Merge a getContractMetadata response and an optional sample item

    Every field resolves through an explicit precedence list, so nothing
    leaves here undefined.
    """
    meta = contract.get("contractMetadata") if isinstance(contract.get("contractMetadata"), dict) else contract
    open_sea = meta.get("openSea") if isinstance(meta.get("openSea"), dict) else {}

    name = first_defined(
        as_text(meta.get("name")),
        as_text(open_sea.get("collectionName")),
        entry.name if entry else None,
        default="Unknown Collection",
    )
    total_supply = first_defined(as_text(meta.get("totalSupply")), default=UNKNOWN_SUPPLY)

    return Collection(
        address=address,
        name=name,
        symbol=first_defined(
            as_text(meta.get("symbol")),
            entry.symbol if entry else None,
            default="NFT",
        ),
        total_supply=total_supply,
        item_count=supply_to_count(total_supply),
        image_url=convert_ipfs_to_http(first_defined(
            as_text(open_sea.get("imageUrl")),
            as_text(dig(sample, "metadata", "image")),
            as_text(dig(sample, "media", 0, "gateway")),
            default="",
        )),
        banner_url=convert_ipfs_to_http(first_defined(
            as_text(open_sea.get("bannerImageUrl")),
            default="",
        )),
        description=first_defined(
            as_text(open_sea.get("description")),
            default=f"{name} is an NFT collection.",
        ),
    )


class CollectionInfoFetcher:
    """Resolves Collection records from the indexing API"""

    def __init__(
        self,
        client: BaseAPIClient,
        resolver: NetworkResolver,
        storage: Optional[StorageAdapter] = None,
    ):
        self.client = client
        self.resolver = resolver
        self.storage = storage

    @staticmethod
    def cache_key(address: str, network: str) -> str:
        return f"collection:{network}:{address.lower()}"

    async def _sample_item(self, address: str, network: str) -> Optional[Dict[str, Any]]:
        """First item of the collection, or None; never raises UpstreamError"""
        try:
            response = await self.client.get_collection_nfts(address, network, limit=1)
        except UpstreamError as e:
            logger.warning(f"Sample item lookup failed for {address} on {network}: {e}")
            return None
        nfts = response.get("nfts")
        if not isinstance(nfts, list) or not nfts:
            return None
        return nfts[0] if isinstance(nfts[0], dict) else None

    async def get_collection_info(self, address: str, network: str) -> Optional[Collection]:
        """
        Resolve one collection

        Returns None when the metadata call fails. A failed sample-item call
        only leaves the image fields at their defaults.
        """
        if not address:
            return None

        network = self.resolver.resolve(network).name
        key = self.cache_key(address, network)

        if self.storage is not None:
            cached = await self.storage.get_cache(key)
            if cached:
                try:
                    return Collection(**cached)
                except (TypeError, ValidationError):
                    logger.debug(f"Discarding unreadable cache entry {key}")

        try:
            contract, sample = await asyncio.gather(
                self.client.get_contract_metadata(address, network),
                self._sample_item(address, network),
            )
        except UpstreamError as e:
            logger.warning(f"Collection metadata unavailable for {address} on {network}: {e}")
            return None

        if contract.get("error"):
            logger.warning(f"Collection metadata error for {address} on {network}: {contract['error']}")
            return None

        collection = build_collection(
            address,
            contract,
            sample,
            entry=self.resolver.catalog_entry(network, address),
        )

        if self.storage is not None:
            await self.storage.set_cache(key, collection.dict())
        return collection
