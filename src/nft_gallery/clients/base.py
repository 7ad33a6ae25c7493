"""Base client with common functionality"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import UpstreamError


class RateLimited(aiohttp.ClientError):
    """HTTP 429 from the provider; retried after rotating the key"""


class BaseAPIClient(ABC):
    """Base class for indexing API clients with retry logic and rate limiting"""

    def __init__(
        self,
        api_keys: List[str],
        rate_limit: int = 100,
        timeout: int = 30,
        max_retries: int = 3,
        retry_wait: float = 2.0,
    ):
        self.api_keys = api_keys
        self.rate_limit = rate_limit
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_wait = retry_wait
        self.current_key_index = 0
        self._rate_limiter_semaphore = asyncio.Semaphore(rate_limit)
        self._last_request_time = 0.0
        self._min_request_interval = 1.0 / rate_limit

    def get_api_key(self) -> str:
        """Get current API key (with rotation)"""
        if not self.api_keys:
            raise ValueError("No API keys configured")
        return self.api_keys[self.current_key_index % len(self.api_keys)]

    def rotate_api_key(self):
        """Rotate to next API key"""
        if self.api_keys:
            self.current_key_index = (self.current_key_index + 1) % len(self.api_keys)

    async def _apply_rate_limit(self):
        """Rate limiting"""
        async with self._rate_limiter_semaphore:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time
            if time_since_last < self._min_request_interval:
                await asyncio.sleep(self._min_request_interval - time_since_last)
            self._last_request_time = time.monotonic()

    async def _get_once(self, url: str, params: Optional[Dict[str, Any]]) -> Any:
        """Single GET; raises aiohttp errors for the retry loop to inspect"""
        await self._apply_rate_limit()

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(url, params=params, headers={"Accept": "application/json"}) as response:
                if response.status == 429:  # Rate limited
                    logger.warning("Rate limited, rotating API key")
                    self.rotate_api_key()
                    raise RateLimited(f"429 from {response.url.path}")

                if response.status >= 500:
                    # Provider hiccup, worth another attempt
                    response.raise_for_status()

                if response.status >= 400:
                    raise UpstreamError(
                        f"HTTP {response.status} {response.reason}",
                        endpoint=url,
                        status=response.status,
                    )

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamError(f"Unparsable response body: {e}", endpoint=url, status=response.status) from e

    async def _get(self, url_factory, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET with retry on transport errors, 429 and 5xx

        ``url_factory`` is called per attempt so a rotated key takes effect.
        Every failure leaves here as ``UpstreamError``.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=1, min=self.retry_wait, max=10),
                retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
                reraise=True,
            ):
                with attempt:
                    data = await self._get_once(url_factory(), params)
        except UpstreamError:
            raise
        except ValueError as e:
            # No API key configured
            logger.error(f"{endpoint} request not sent: {e}")
            raise UpstreamError(str(e), endpoint=endpoint) from e
        except aiohttp.ClientResponseError as e:
            logger.error(f"{endpoint} request failed: {e.status} {e.message}")
            raise UpstreamError(f"HTTP {e.status} {e.message}", endpoint=endpoint, status=e.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{endpoint} request failed: {e!r}")
            raise UpstreamError(f"Transport error: {e!r}", endpoint=endpoint) from e

        if not isinstance(data, dict):
            raise UpstreamError(f"Expected a JSON object, got {type(data).__name__}", endpoint=endpoint)
        return data

    @abstractmethod
    async def get_owned_nfts(
        self,
        owner_address: str,
        network: str,
        page_key: Optional[str] = None,
        page_size: int = 100,
    ) -> Dict[str, Any]:
        """Get NFTs owned by a wallet"""
        pass

    @abstractmethod
    async def get_collection_nfts(
        self,
        contract_address: str,
        network: str,
        start_token: Optional[str] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        """Get a page of NFTs in a collection, metadata included"""
        pass

    @abstractmethod
    async def get_nft_metadata(
        self,
        contract_address: str,
        token_id: str,
        network: str,
    ) -> Dict[str, Any]:
        """Get individual token metadata"""
        pass

    @abstractmethod
    async def get_contract_metadata(
        self,
        contract_address: str,
        network: str,
    ) -> Dict[str, Any]:
        """Get collection (contract) metadata"""
        pass
