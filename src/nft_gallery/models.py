"""
Normalized Pydantic models for collections, items and queries
"""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, validator


class SortKey(str, Enum):
    """Fields items can be sorted by"""
    TOKEN_ID = "token_id"
    NAME = "name"
    PRICE = "price"

    @classmethod
    def from_string(cls, value: str) -> "SortKey":
        """Convert string to SortKey (accepts camelCase aliases)"""
        mapping = {
            "token_id": cls.TOKEN_ID,
            "tokenid": cls.TOKEN_ID,
            "id": cls.TOKEN_ID,
            "name": cls.NAME,
            "price": cls.PRICE,
        }
        return mapping.get(value.lower().strip(), cls.TOKEN_ID)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Trait(BaseModel):
    """NFT trait/attribute"""
    trait_type: str
    value: Union[str, int, float]
    display_type: Optional[str] = None

    class Config:
        frozen = True


class TokenMetadata(BaseModel):
    """Parsed token metadata document"""
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    attributes: List[Trait] = Field(default_factory=list)

    class Config:
        frozen = True


class Collection(BaseModel):
    """A collection of items sharing one contract address"""

    address: str
    name: str
    symbol: str
    total_supply: str  # may be the "???" sentinel when unknown
    item_count: int = 0
    image_url: str = ""
    banner_url: str = ""
    description: str = ""

    class Config:
        frozen = True


class Item(BaseModel):
    """One token instance within a collection"""

    # Core identifiers
    token_id: str  # stored without the 0x prefix
    contract_address: str
    network: str

    name: str
    symbol: str
    token_uri: str = ""
    metadata: Optional[TokenMetadata] = None
    owner: str = "Unknown"

    # Synthetic market data
    price: str
    is_listed: bool = False

    image_url: str = ""
    collection: Optional[Collection] = None

    class Config:
        frozen = True

    @property
    def attributes(self) -> List[Trait]:
        return list(self.metadata.attributes) if self.metadata else []


class QueryParams(BaseModel):
    """Per-call browse parameters"""

    network: Optional[str] = None  # None means the engine default
    page: int = 1
    page_size: int = 20
    sort_by: SortKey = SortKey.TOKEN_ID
    sort_dir: SortDirection = SortDirection.ASC
    query: str = ""
    # trait name -> selected values (union within a trait, intersection across traits)
    attributes: Dict[str, List[str]] = Field(default_factory=dict)

    @validator("page")
    def page_positive(cls, v):
        if v < 1:
            raise ValueError("page must be >= 1")
        return v

    @validator("page_size")
    def page_size_positive(cls, v):
        if v < 1:
            raise ValueError("page_size must be >= 1")
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class ItemPage(BaseModel):
    """One page of a filtered, sorted collection listing"""
    items: List[Item]
    total_count: int  # matches before pagination
    page: int
    page_size: int
    facets: Dict[str, List[str]] = Field(default_factory=dict)
    has_more: bool = False


class TransactionReceipt(BaseModel):
    """Result of a simulated marketplace action (no on-chain effect)"""
    success: bool
    action: str  # "purchase", "list" or "cancel"
    transaction_hash: str
    token_id: str
    contract_address: str
    network: str
    price: Optional[str] = None
    simulated: bool = True
