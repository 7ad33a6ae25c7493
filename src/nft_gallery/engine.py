"""
Aggregation engine: the query surface consumed by the UI
"""

import asyncio
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from .clients.alchemy import AlchemyClient
from .clients.base import BaseAPIClient
from .collection_info import CollectionInfoFetcher, default_collection
from .config import Config, config
from .errors import NormalizationError, UpstreamError, require
from .fanout import settle_all, settle_each
from .market import PriceKind, SyntheticMarket
from .models import Collection, Item, ItemPage, QueryParams
from .networks import DEFAULT_NETWORK, NETWORKS, CatalogEntry, NetworkResolver, default_resolver
from .normalizer import Normalizer
from .query import apply_query
from .storage import StorageAdapter, get_storage_adapter
from .utils import contains_ci, dig, ensure_hex_prefix

ItemFilter = Callable[[Item], bool]


def _describe_raw(raw: Any) -> str:
    token_id = dig(raw, "id", "tokenId", default="?")
    contract = dig(raw, "contract", "address", default="?")
    return f"{contract}#{token_id}"


def _describe_entry(entry: CatalogEntry) -> str:
    return f"{entry.name} ({entry.address})"


class AggregationEngine:
    """
    Composes collection resolution and item normalization over the indexing API

    Every operation returns a best-effort result: branch and item failures
    are logged and dropped, whole-operation failures degrade to ``[]`` or
    ``None``. Only malformed requests raise (``InvalidArgumentError``).
    """

    # Upper bound on owner pages followed per call
    MAX_OWNER_PAGES = 10

    def __init__(
        self,
        client: BaseAPIClient,
        resolver: NetworkResolver = default_resolver,
        market: Optional[SyntheticMarket] = None,
        storage: Optional[StorageAdapter] = None,
        max_workers: int = 10,
    ):
        self.client = client
        self.resolver = resolver
        self.market = market or SyntheticMarket()
        self.fetcher = CollectionInfoFetcher(client, resolver, storage=storage)
        self.normalizer = Normalizer(self.market)
        self._worker_semaphore = asyncio.Semaphore(max_workers)

    @classmethod
    def from_config(cls, config_instance: Optional[Config] = None) -> "AggregationEngine":
        """Build an engine backed by Alchemy from configuration"""
        cfg = config_instance or config
        if not cfg.alchemy_api_keys:
            logger.warning("ALCHEMY_API_KEY not configured; every upstream call will fail")

        default = cfg.default_network if cfg.default_network in NETWORKS else DEFAULT_NETWORK
        resolver = NetworkResolver(default=default)
        client = AlchemyClient(
            api_keys=cfg.alchemy_api_keys,
            resolver=resolver,
            rate_limit=cfg.rate_limit,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
        )
        return cls(
            client,
            resolver=resolver,
            market=SyntheticMarket(cfg.market_seed),
            storage=get_storage_adapter(cfg),
            max_workers=cfg.max_workers,
        )

    async def close(self) -> None:
        """Release the cache connection, if any"""
        if self.fetcher.storage is not None:
            await self.fetcher.storage.close()

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def _network(self, network: Optional[str]) -> str:
        return self.resolver.resolve(network).name

    async def resolve_collection(self, address: str, network: str) -> Collection:
        """Collection record, or the synthetic default when it cannot be resolved"""
        collection = await self.fetcher.get_collection_info(address, network)
        if collection is None:
            return default_collection(address, self.resolver.catalog_entry(network, address))
        return collection

    def _normalize_all(
        self,
        raw_items: List[Any],
        network: str,
        collections: Dict[str, Collection],
        kind: PriceKind,
        owner: Optional[str] = None,
        fallback: Optional[Collection] = None,
    ) -> List[Item]:
        def normalize(raw: Any) -> Item:
            address = dig(raw, "contract", "address")
            if isinstance(address, str) and address:
                collection = collections.get(address.lower(), fallback)
            else:
                collection = fallback
            return self.normalizer.normalize(raw, network, collection, kind=kind, owner=owner)

        return settle_each(raw_items, normalize, label="item", describe=_describe_raw).values

    async def _fetch_collection_window(
        self,
        address: str,
        network: str,
        count: int,
        start_token: Optional[str] = None,
    ) -> Tuple[List[Any], Optional[str]]:
        """
        Up to ``count`` raw items, following nextToken across provider pages

        Raises UpstreamError when the first page fails; a later page failing
        keeps what was already fetched.
        """
        raw_items: List[Any] = []
        next_token = start_token
        first = True
        while len(raw_items) < count:
            try:
                response = await self.client.get_collection_nfts(
                    address, network, start_token=next_token, limit=count - len(raw_items)
                )
            except UpstreamError:
                if first:
                    raise
                logger.warning(f"Stopped paging {address} after {len(raw_items)} items")
                break
            first = False
            nfts = response.get("nfts")
            page = [raw for raw in nfts if isinstance(raw, dict)] if isinstance(nfts, list) else []
            raw_items.extend(page)
            next_token = response.get("nextToken")
            if not page or not next_token:
                break
        return raw_items[:count], next_token

    async def _collection_items(
        self,
        entry: CatalogEntry,
        network: str,
        quota: int,
        kind: PriceKind,
        item_filter: Optional[ItemFilter] = None,
    ) -> List[Item]:
        """One fan-out branch: fetch, normalize and filter a collection's items"""
        window, collection = await asyncio.gather(
            self._fetch_collection_window(entry.address, network, quota),
            self.resolve_collection(entry.address, network),
            return_exceptions=True,
        )
        if isinstance(window, BaseException):
            raise window
        if isinstance(collection, BaseException):
            raise collection

        raw_items, _ = window
        items = self._normalize_all(
            raw_items, network, {entry.address.lower(): collection}, kind, fallback=collection
        )
        if item_filter is not None:
            items = [item for item in items if item_filter(item)]
        return items

    async def _fan_out(
        self,
        entries: List[CatalogEntry],
        network: str,
        limit: int,
        item_filter: Optional[ItemFilter] = None,
    ) -> List[Item]:
        """Split ``limit`` across collections, fetch all, concatenate in catalog order"""
        if not entries:
            return []
        quota = math.ceil(limit / len(entries))

        settled = await settle_all(
            entries,
            lambda entry: self._collection_items(entry, network, quota, PriceKind.BROWSABLE, item_filter),
            label="collection",
            semaphore=self._worker_semaphore,
            describe=_describe_entry,
        )

        items: List[Item] = []
        for branch in settled.values:
            items.extend(branch)
        return items[:limit]

    # ------------------------------------------------------------------
    # Query operations
    # ------------------------------------------------------------------

    async def list_by_owner(self, owner_address: str, network: Optional[str] = None) -> List[Item]:
        """
        Items owned by an address, in upstream order

        An empty address (no wallet connected) gives ``[]`` without any
        upstream call. An upstream failure also gives ``[]``.
        """
        if not owner_address or not owner_address.strip():
            return []
        network = self._network(network)

        raw_items: List[Any] = []
        page_key = None
        for page_number in range(self.MAX_OWNER_PAGES):
            try:
                response = await self.client.get_owned_nfts(owner_address, network, page_key=page_key)
            except UpstreamError as e:
                if page_number == 0:
                    logger.error(f"Owned items unavailable for {owner_address} on {network}: {e}")
                    return []
                logger.warning(f"Stopped paging owned items for {owner_address}: {e}")
                break
            owned = response.get("ownedNfts")
            if not isinstance(owned, list):
                break
            raw_items.extend(owned)
            page_key = response.get("pageKey")
            if not page_key:
                break

        addresses: List[str] = []
        seen = set()
        for raw in raw_items:
            address = dig(raw, "contract", "address")
            if isinstance(address, str) and address and address.lower() not in seen:
                seen.add(address.lower())
                addresses.append(address)

        resolved = await settle_all(
            addresses,
            lambda address: self.resolve_collection(address, network),
            label="collection",
            semaphore=self._worker_semaphore,
        )
        collections = {collection.address.lower(): collection for collection in resolved.values}

        items = self._normalize_all(raw_items, network, collections, PriceKind.OWNED, owner=owner_address)
        logger.info(f"Fetched {len(items)} owned items for {owner_address} on {network}")
        return items

    async def list_browsable(self, network: Optional[str] = None, limit: int = 20) -> List[Item]:
        """Listing-style browse across the network's well-known collections"""
        if limit <= 0:
            return []
        network = self._network(network)
        entries = list(self.resolver.well_known_collections(network))

        items = await self._fan_out(entries, network, limit)
        logger.info(f"Fetched {len(items)} browsable items on {network}")
        return items

    async def get_item_detail(self, address: str, token_id: str, network: Optional[str] = None) -> Optional[Item]:
        """
        One item with its collection

        Raises:
            InvalidArgumentError: ``address`` or ``token_id`` is empty

        Returns None when the item is not found or the upstream is unavailable.
        """
        require(address=address, token_id=token_id)
        network = self._network(network)
        formatted_token_id = ensure_hex_prefix(token_id.strip())

        try:
            raw = await self.client.get_nft_metadata(address, formatted_token_id, network)
        except UpstreamError as e:
            logger.error(f"Item {address}#{formatted_token_id} unavailable on {network}: {e}")
            return None

        collection = await self.resolve_collection(address, network)
        try:
            return self.normalizer.normalize(raw, network, collection, kind=PriceKind.OWNED)
        except NormalizationError as e:
            logger.error(f"Item {address}#{formatted_token_id} could not be normalized: {e}")
            return None

    async def search(self, query: str, network: Optional[str] = None, limit: int = 20) -> List[Item]:
        """
        Text search: catalog name/symbol match first, then item name match

        Both filters apply independently; a matching collection does not
        exempt its items from the item-name filter.
        """
        query = (query or "").strip()
        if not query or limit <= 0:
            return []
        network = self._network(network)

        entries = [
            entry for entry in self.resolver.well_known_collections(network)
            if contains_ci(entry.name, query) or contains_ci(entry.symbol, query)
        ]
        if not entries:
            logger.debug(f"No collection matches '{query}' on {network}")
            return []

        items = await self._fan_out(
            entries,
            network,
            limit,
            item_filter=lambda item: contains_ci(item.name, query),
        )
        logger.info(f"Search '{query}' on {network}: {len(items)} items from {len(entries)} collections")
        return items

    # ------------------------------------------------------------------
    # Collection discovery and browsing
    # ------------------------------------------------------------------

    def count_collections(self, network: Optional[str] = None) -> int:
        """Number of well-known collections on the network"""
        return len(self.resolver.well_known_collections(network))

    async def list_collections(
        self,
        network: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> List[Collection]:
        """A page of the network's well-known collections, resolved"""
        if page < 1 or page_size < 1:
            return []
        network = self._network(network)
        start = (page - 1) * page_size
        entries = self.resolver.well_known_collections(network)[start:start + page_size]

        settled = await settle_all(
            entries,
            lambda entry: self.resolve_collection(entry.address, network),
            label="collection",
            semaphore=self._worker_semaphore,
            describe=_describe_entry,
        )
        return settled.values

    async def browse_collection(self, address: str, params: Optional[QueryParams] = None) -> ItemPage:
        """
        One page of a collection with text query, attribute filters and sort

        The upstream window for ``params.page`` is fetched, then filtered
        and sorted in memory; facets describe the whole window.

        Raises:
            InvalidArgumentError: ``address`` is empty
        """
        require(address=address)
        params = params or QueryParams()
        network = self._network(params.network)
        start_token = str(params.offset) if params.offset else None

        window, collection = await asyncio.gather(
            self._fetch_collection_window(address, network, params.page_size, start_token=start_token),
            self.resolve_collection(address, network),
            return_exceptions=True,
        )
        if isinstance(collection, BaseException) and not isinstance(collection, Exception):
            raise collection
        if isinstance(window, BaseException):
            if not isinstance(window, UpstreamError):
                raise window
            logger.error(f"Collection {address} unavailable on {network}: {window}")
            return ItemPage(items=[], total_count=0, page=params.page, page_size=params.page_size)
        if isinstance(collection, Exception):
            logger.warning(f"Collection record for {address} failed: {collection!r}")
            collection = default_collection(address, self.resolver.catalog_entry(network, address))

        raw_items, next_token = window
        items = self._normalize_all(
            raw_items, network, {address.lower(): collection}, PriceKind.BROWSABLE, fallback=collection
        )
        return apply_query(items, params, page=1, has_more=bool(next_token))
