"""
Network resolution: logical network name -> API endpoint + collection catalog

The table is built once at import time and never mutated. Engines receive a
``NetworkResolver`` by reference.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

DEFAULT_NETWORK = "mainnet"


@dataclass(frozen=True)
class CatalogEntry:
    """A well-known collection on a network"""
    address: str
    name: str
    symbol: str


@dataclass(frozen=True)
class NetworkSpec:
    """Static configuration for one network"""
    name: str
    alchemy_subdomain: str
    catalog: Tuple[CatalogEntry, ...]

    def endpoint_base(self, api_key: str) -> str:
        """Base URL for the NFT API on this network"""
        return f"https://{self.alchemy_subdomain}.g.alchemy.com/nft/v2/{api_key}"


MAINNET_CATALOG = (
    CatalogEntry("0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D", "Bored Ape Yacht Club", "BAYC"),
    CatalogEntry("0x60E4d786628Fea6478F785A6d7e704777c86a7c6", "Mutant Ape Yacht Club", "MAYC"),
    CatalogEntry("0xBd3531dA5CF5857e7CfAA92426877b022e612cf8", "Pudgy Penguins", "PPG"),
    CatalogEntry("0x34d85c9CDeB23FA97cb08333b511ac86E1C4E258", "Otherdeed for Otherside", "OTHR"),
    CatalogEntry("0xED5AF388653567Af2F388E6224dC7C4b3241C544", "Azuki", "AZUKI"),
    CatalogEntry("0x8a90CAb2b38dba80c64b7734e58Ee1dB38B8992e", "Doodles", "DOODLE"),
    CatalogEntry("0x49cF6f5d44E70224e2E23fDcdd2C053F30aDA28B", "CloneX", "CloneX"),
    CatalogEntry("0x1A92f7381B9F03921564a437210bB9396471050C", "Cool Cats", "COOL"),
    CatalogEntry("0x7Bd29408f11D2bFC23c34f18275bBf23bB716Bc7", "Meebits", "MEEBITS"),
    CatalogEntry("0x524cAB2ec69124574082676e6F654a18df49A048", "Lil Pudgys", "LP"),
)

SEPOLIA_CATALOG = (
    CatalogEntry("0x816001D49E7e88e214dA7FBb689e309E0C536476", "NFT Marketplace Collection", "MKT"),
    CatalogEntry("0x5180db8F5c931aaE63c74266b211F580155ecac8", "Sepolia Test Collection", "TEST"),
)

NETWORKS: Mapping[str, NetworkSpec] = MappingProxyType({
    "mainnet": NetworkSpec("mainnet", "eth-mainnet", MAINNET_CATALOG),
    "sepolia": NetworkSpec("sepolia", "eth-sepolia", SEPOLIA_CATALOG),
})

# Common aliases users type in
ALIASES: Mapping[str, str] = MappingProxyType({
    "ethereum": "mainnet",
    "eth": "mainnet",
    "eth-mainnet": "mainnet",
    "eth-sepolia": "sepolia",
})


class NetworkResolver:
    """Maps network names to their static configuration"""

    def __init__(self, networks: Mapping[str, NetworkSpec] = NETWORKS, default: str = DEFAULT_NETWORK):
        if default not in networks:
            raise ValueError(f"Default network '{default}' is not configured")
        self._networks = networks
        self._default = default

    @property
    def default(self) -> str:
        return self._default

    def networks(self) -> Tuple[str, ...]:
        """Names of every supported network"""
        return tuple(self._networks)

    def resolve(self, network: Optional[str]) -> NetworkSpec:
        """
        Resolve a network name

        Unknown or empty names fall back to the default network instead of
        raising; network choice is advisory UI state.
        """
        key = (network or "").strip().lower()
        key = ALIASES.get(key, key)
        return self._networks.get(key) or self._networks[self._default]

    def endpoint_base(self, network: Optional[str], api_key: str) -> str:
        return self.resolve(network).endpoint_base(api_key)

    def well_known_collections(self, network: Optional[str]) -> Tuple[CatalogEntry, ...]:
        """Ordered catalog of well-known collections for the network"""
        return self.resolve(network).catalog

    def catalog_entry(self, network: Optional[str], address: str) -> Optional[CatalogEntry]:
        """Catalog entry for an address on the network, if listed"""
        wanted = address.lower()
        for entry in self.well_known_collections(network):
            if entry.address.lower() == wanted:
                return entry
        return None


default_resolver = NetworkResolver()
