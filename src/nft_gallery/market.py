"""
Synthetic market data

Prices, listing flags and transaction ids are placeholders for a real
pricing/marketplace collaborator. Everything random in the package is drawn
from one ``SyntheticMarket`` so tests can seed it and a real implementation
can replace it without touching the engine.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PriceKind(str, Enum):
    """Which query an item was produced by"""
    OWNED = "owned"
    BROWSABLE = "browsable"


@dataclass(frozen=True)
class PriceBand:
    low: float
    high: float
    listed_probability: float


# Marketplace listings are priced above freshly-seen owned items
PRICE_BANDS = {
    PriceKind.OWNED: PriceBand(low=0.01, high=0.21, listed_probability=0.5),
    PriceKind.BROWSABLE: PriceBand(low=0.05, high=0.55, listed_probability=1.0),
}


class SyntheticMarket:
    """Seedable source of synthetic prices, listing flags and tx ids"""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def price(self, kind: PriceKind) -> str:
        """ETH price as a decimal string with 4 places"""
        band = PRICE_BANDS[PriceKind(kind)]
        return f"{self._rng.uniform(band.low, band.high):.4f}"

    def is_listed(self, kind: PriceKind) -> bool:
        band = PRICE_BANDS[PriceKind(kind)]
        return self._rng.random() < band.listed_probability

    def transaction_hash(self) -> str:
        """A 32-byte hex transaction id"""
        return f"0x{self._rng.getrandbits(256):064x}"
