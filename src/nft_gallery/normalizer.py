"""Normalize Alchemy NFT records to the Item model"""

from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from .errors import NormalizationError
from .market import PriceKind, SyntheticMarket
from .models import Collection, Item, TokenMetadata, Trait
from .utils import as_text, convert_ipfs_to_http, dig, first_defined, strip_hex_prefix


def parse_traits(raw_attributes: Any) -> List[Trait]:
    """Parse an attribute list, skipping entries that are not usable traits"""
    if not isinstance(raw_attributes, list):
        return []

    traits = []
    for attr in raw_attributes:
        if not isinstance(attr, dict) or attr.get("value") is None:
            continue
        try:
            traits.append(Trait(
                trait_type=str(attr.get("trait_type") or ""),
                value=attr["value"],
                display_type=attr.get("display_type"),
            ))
        except ValidationError:
            logger.debug(f"Skipping malformed attribute: {attr}")
    return traits


def parse_metadata(raw_metadata: Any) -> Optional[TokenMetadata]:
    """Parse the upstream metadata object; anything but a mapping is absent"""
    if not isinstance(raw_metadata, dict) or not raw_metadata:
        return None

    def text(key: str) -> Optional[str]:
        value = raw_metadata.get(key)
        return value if isinstance(value, str) else None

    return TokenMetadata(
        name=text("name"),
        description=text("description"),
        image=text("image"),
        attributes=parse_traits(raw_metadata.get("attributes")),
    )


class Normalizer:
    """Convert raw indexing API records into Item models"""

    def __init__(self, market: SyntheticMarket):
        self.market = market

    @staticmethod
    def token_id(data: Dict[str, Any]) -> str:
        """Upstream token id with the hex prefix stripped exactly once"""
        raw_token_id = dig(data, "id", "tokenId")
        if raw_token_id is None or raw_token_id == "":
            raise NormalizationError("Record has no id.tokenId")
        return strip_hex_prefix(str(raw_token_id))

    @staticmethod
    def display_name(data: Dict[str, Any], token_id: str) -> str:
        """
        Precedence: metadata.name, title, "Item #<tokenId>"
        """
        return first_defined(
            as_text(dig(data, "metadata", "name")),
            as_text(data.get("title")),
            default=f"Item #{token_id}",
        )

    @staticmethod
    def image_url(data: Dict[str, Any]) -> str:
        """
        Precedence: metadata.image, first media gateway URL, ""
        """
        return convert_ipfs_to_http(first_defined(
            as_text(dig(data, "metadata", "image")),
            as_text(dig(data, "media", 0, "gateway")),
            default="",
        ))

    def normalize(
        self,
        data: Dict[str, Any],
        network: str,
        collection: Optional[Collection] = None,
        kind: PriceKind = PriceKind.BROWSABLE,
        owner: Optional[str] = None,
    ) -> Item:
        """
        Normalize one Alchemy NFT record

        Deterministic for identical inputs except ``price`` and
        ``is_listed``, which come from the synthetic market.

        Raises:
            NormalizationError: the record has no token id or contract address
        """
        if not isinstance(data, dict):
            raise NormalizationError(f"Expected an object, got {type(data).__name__}")

        token_id = self.token_id(data)

        contract_address = first_defined(
            as_text(dig(data, "contract", "address")),
            collection.address if collection else None,
        )
        if not contract_address:
            raise NormalizationError(f"Token {token_id} has no contract address")

        metadata = parse_metadata(data.get("metadata"))

        return Item(
            token_id=token_id,
            contract_address=contract_address,
            network=network,
            name=self.display_name(data, token_id),
            symbol=first_defined(
                as_text(dig(data, "contract", "symbol")),
                as_text(dig(data, "contractMetadata", "symbol")),
                collection.symbol if collection else None,
                default="NFT",
            ),
            token_uri=first_defined(as_text(dig(data, "tokenUri", "raw")), default=""),
            metadata=metadata,
            owner=first_defined(
                owner,
                as_text(dig(data, "owners", 0)),
                as_text(data.get("owner")),
                default="Unknown",
            ),
            price=self.market.price(kind),
            is_listed=self.market.is_listed(kind),
            image_url=self.image_url(data),
            collection=collection,
        )
