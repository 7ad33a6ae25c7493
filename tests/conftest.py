"""Shared fixtures: an in-memory indexing API and raw record builders"""

from typing import Any, Dict, List, Optional

import pytest

from nft_gallery.clients.base import BaseAPIClient
from nft_gallery.engine import AggregationEngine
from nft_gallery.errors import UpstreamError
from nft_gallery.market import SyntheticMarket
from nft_gallery.networks import CatalogEntry, NetworkResolver, NetworkSpec

ADDR_FOO = "0xAAA0000000000000000000000000000000000001"
ADDR_BAR = "0xBBB0000000000000000000000000000000000002"
ADDR_BAZ = "0xCCC0000000000000000000000000000000000003"


def raw_nft(
    address: str,
    token_id: str,
    name: Optional[str] = None,
    title: Optional[str] = None,
    image: Optional[str] = None,
    attributes: Optional[List[Dict[str, Any]]] = None,
    gateway: Optional[str] = None,
) -> Dict[str, Any]:
    """An Alchemy v2 NFT record"""
    metadata: Dict[str, Any] = {}
    if name is not None:
        metadata["name"] = name
    if image is not None:
        metadata["image"] = image
    if attributes is not None:
        metadata["attributes"] = attributes

    record: Dict[str, Any] = {
        "id": {"tokenId": token_id, "tokenMetadata": {"tokenType": "ERC721"}},
        "contract": {"address": address},
        "tokenUri": {"raw": f"ipfs://Qm{token_id}", "gateway": ""},
        "metadata": metadata,
    }
    if title is not None:
        record["title"] = title
    if gateway is not None:
        record["media"] = [{"gateway": gateway}]
    return record


def contract_metadata(name: str, symbol: str, total_supply: str = "100", **open_sea: Any) -> Dict[str, Any]:
    """A getContractMetadata response"""
    return {
        "address": "ignored",
        "contractMetadata": {
            "name": name,
            "symbol": symbol,
            "totalSupply": total_supply,
            "tokenType": "ERC721",
            "openSea": open_sea,
        },
    }


class FakeIndexer(BaseAPIClient):
    """
    In-memory indexing API

    Any stored value that is an exception is raised instead of returned.
    Collection pages hold at most ``page_cap`` items and paginate by
    decimal offset like ``startToken``.
    """

    def __init__(self, page_cap: int = 100):
        super().__init__(api_keys=["test-key"], rate_limit=1000)
        self.page_cap = page_cap
        self.owned: Dict[str, Any] = {}
        self.collection_items: Dict[str, Any] = {}
        self.contracts: Dict[str, Any] = {}
        self.tokens: Dict[Any, Any] = {}
        self.calls: List[tuple] = []

    @staticmethod
    def _unwrap(value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        return value

    async def get_owned_nfts(self, owner_address, network, page_key=None, page_size=100):
        self.calls.append(("getNFTs", owner_address, network, page_key))
        return self._unwrap(self.owned.get(owner_address, {"ownedNfts": []}))

    async def get_collection_nfts(self, contract_address, network, start_token=None, limit=100):
        self.calls.append(("getNFTsForCollection", contract_address, network, start_token, limit))
        nfts = self._unwrap(self.collection_items.get(contract_address.lower(), []))
        start = int(start_token) if start_token else 0
        chunk = nfts[start:start + min(limit, self.page_cap)]
        end = start + len(chunk)
        return {"nfts": chunk, "nextToken": str(end) if end < len(nfts) else None}

    async def get_nft_metadata(self, contract_address, token_id, network):
        self.calls.append(("getNFTMetadata", contract_address, token_id, network))
        key = (contract_address.lower(), token_id)
        if key not in self.tokens:
            raise UpstreamError("HTTP 400 Bad Request", endpoint="getNFTMetadata", status=400)
        return self._unwrap(self.tokens[key])

    async def get_contract_metadata(self, contract_address, network):
        self.calls.append(("getContractMetadata", contract_address, network))
        key = contract_address.lower()
        if key not in self.contracts:
            raise UpstreamError("HTTP 404 Not Found", endpoint="getContractMetadata", status=404)
        return self._unwrap(self.contracts[key])

    def calls_to(self, endpoint: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == endpoint]


@pytest.fixture
def resolver():
    """Two-network resolver with a small catalog"""
    catalog = (
        CatalogEntry(ADDR_FOO, "Foo", "FOO"),
        CatalogEntry(ADDR_BAR, "Bar Club", "BARC"),
        CatalogEntry(ADDR_BAZ, "Baz Punks", "BAZ"),
    )
    networks = {
        "mainnet": NetworkSpec("mainnet", "eth-mainnet", catalog),
        "sepolia": NetworkSpec("sepolia", "eth-sepolia", (CatalogEntry(ADDR_FOO, "Foo", "FOO"),)),
    }
    return NetworkResolver(networks)


@pytest.fixture
def indexer():
    fake = FakeIndexer()
    fake.contracts[ADDR_FOO.lower()] = contract_metadata("Foo", "FOO", "3", imageUrl="https://img/foo.png")
    fake.contracts[ADDR_BAR.lower()] = contract_metadata("Bar Club", "BARC", "2")
    fake.contracts[ADDR_BAZ.lower()] = contract_metadata("Baz Punks", "BAZ", "2")
    fake.collection_items[ADDR_FOO.lower()] = [
        raw_nft(ADDR_FOO, "0x01", name="Foo #1", attributes=[{"trait_type": "Hat", "value": "Cap"}]),
        raw_nft(ADDR_FOO, "0x02", name="Foo #2", attributes=[{"trait_type": "Hat", "value": "Crown"}]),
        raw_nft(ADDR_FOO, "0x03", name="Special Foo"),
    ]
    fake.collection_items[ADDR_BAR.lower()] = [
        raw_nft(ADDR_BAR, "0x0a", name="Bar #10"),
        raw_nft(ADDR_BAR, "0x0b", name="Bar #11"),
    ]
    fake.collection_items[ADDR_BAZ.lower()] = [
        raw_nft(ADDR_BAZ, "0x10", title="Baz sixteen"),
        raw_nft(ADDR_BAZ, "0x11"),
    ]
    return fake


@pytest.fixture
def engine(indexer, resolver):
    return AggregationEngine(indexer, resolver=resolver, market=SyntheticMarket(seed=7), max_workers=4)
