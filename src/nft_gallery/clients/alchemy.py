"""Alchemy NFT API (v2) client"""

from typing import Any, Dict, List, Optional

from loguru import logger

from .base import BaseAPIClient
from ..networks import NetworkResolver, default_resolver


def _records(value: Any) -> List[Any]:
    """Record list from a response field; any other shape is absent"""
    return value if isinstance(value, list) else []


class AlchemyClient(BaseAPIClient):
    """Alchemy API client"""

    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        api_keys: List[str],
        resolver: NetworkResolver = default_resolver,
        rate_limit: int = 330,
        timeout: int = 30,
        max_retries: int = 3,
        **kwargs: Any,
    ):
        super().__init__(api_keys, rate_limit=rate_limit, timeout=timeout, max_retries=max_retries, **kwargs)
        self.resolver = resolver

    def _url_factory(self, network: str, endpoint: str):
        """Build the endpoint URL lazily so key rotation applies to retries"""
        return lambda: f"{self.resolver.endpoint_base(network, self.get_api_key())}/{endpoint}"

    async def _call(self, endpoint: str, network: str, params: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Alchemy {endpoint} on {self.resolver.resolve(network).name}: {params}")
        return await self._get(self._url_factory(network, endpoint), endpoint, params=params)

    async def get_owned_nfts(
        self,
        owner_address: str,
        network: str,
        page_key: Optional[str] = None,
        page_size: int = 100,
    ) -> Dict[str, Any]:
        """Get NFTs owned by a wallet"""
        params = {
            "owner": owner_address,
            "withMetadata": "true",
            "pageSize": min(page_size, self.MAX_PAGE_SIZE),
        }
        if page_key:
            params["pageKey"] = page_key

        response = await self._call("getNFTs", network, params)
        return {
            "ownedNfts": _records(response.get("ownedNfts")),
            "pageKey": response.get("pageKey"),
            "totalCount": response.get("totalCount"),
        }

    async def get_collection_nfts(
        self,
        contract_address: str,
        network: str,
        start_token: Optional[str] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        """Get a page of NFTs in a collection"""
        params = {
            "contractAddress": contract_address,
            "withMetadata": "true",
            "limit": max(1, min(limit, self.MAX_PAGE_SIZE)),
        }
        if start_token:
            params["startToken"] = start_token

        response = await self._call("getNFTsForCollection", network, params)
        return {
            "nfts": _records(response.get("nfts")),
            "nextToken": response.get("nextToken"),
        }

    async def get_nft_metadata(
        self,
        contract_address: str,
        token_id: str,
        network: str,
    ) -> Dict[str, Any]:
        """Get individual token metadata"""
        return await self._call(
            "getNFTMetadata",
            network,
            {"contractAddress": contract_address, "tokenId": token_id},
        )

    async def get_contract_metadata(
        self,
        contract_address: str,
        network: str,
    ) -> Dict[str, Any]:
        """Get collection metadata"""
        return await self._call(
            "getContractMetadata",
            network,
            {"contractAddress": contract_address},
        )
