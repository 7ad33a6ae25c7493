"""
Simulated marketplace actions

SIMULATION ONLY: nothing here builds, signs or submits a transaction, and no
state changes anywhere. Each call sleeps to mimic confirmation latency and
returns a receipt with a synthetic transaction hash.
"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Optional

from loguru import logger

from .config import Config, config
from .errors import InvalidArgumentError, require
from .market import SyntheticMarket
from .models import TransactionReceipt
from .networks import NetworkResolver, default_resolver


class ActionSimulator:
    """Stand-in for the on-chain purchase/listing write path"""

    def __init__(
        self,
        market: Optional[SyntheticMarket] = None,
        resolver: NetworkResolver = default_resolver,
        purchase_delay: float = 2.0,
        listing_delay: float = 1.5,
        cancel_delay: float = 1.5,
    ):
        self.market = market or SyntheticMarket()
        self.resolver = resolver
        self.purchase_delay = purchase_delay
        self.listing_delay = listing_delay
        self.cancel_delay = cancel_delay

    @classmethod
    def from_config(cls, config_instance: Optional[Config] = None, market: Optional[SyntheticMarket] = None):
        cfg = config_instance or config
        return cls(
            market=market or SyntheticMarket(cfg.market_seed),
            purchase_delay=cfg.purchase_delay,
            listing_delay=cfg.listing_delay,
            cancel_delay=cfg.cancel_delay,
        )

    async def purchase(
        self,
        token_id: str,
        contract_address: str,
        network: str,
        buyer_address: str,
    ) -> TransactionReceipt:
        """Simulate buying an item (no on-chain effect)"""
        require(
            token_id=token_id,
            contract_address=contract_address,
            network=network,
            buyer_address=buyer_address,
        )
        network = self.resolver.resolve(network).name
        logger.info(f"[simulated] {buyer_address} buying {contract_address}#{token_id} on {network}")

        await asyncio.sleep(self.purchase_delay)

        return TransactionReceipt(
            success=True,
            action="purchase",
            transaction_hash=self.market.transaction_hash(),
            token_id=token_id,
            contract_address=contract_address,
            network=network,
        )

    async def list_item(
        self,
        token_id: str,
        contract_address: str,
        price: str,
        owner_address: str,
        network: str,
    ) -> TransactionReceipt:
        """Simulate listing an item for sale at ``price`` ETH (no on-chain effect)"""
        require(
            token_id=token_id,
            contract_address=contract_address,
            price=price,
            owner_address=owner_address,
            network=network,
        )
        try:
            amount = Decimal(str(price).strip())
        except InvalidOperation as e:
            raise InvalidArgumentError(f"Price is not a number: {price!r}") from e
        if not amount.is_finite() or amount <= 0:
            raise InvalidArgumentError(f"Price must be positive: {price!r}")

        network = self.resolver.resolve(network).name
        logger.info(f"[simulated] {owner_address} listing {contract_address}#{token_id} for {amount} ETH on {network}")

        await asyncio.sleep(self.listing_delay)

        return TransactionReceipt(
            success=True,
            action="list",
            transaction_hash=self.market.transaction_hash(),
            token_id=token_id,
            contract_address=contract_address,
            network=network,
            price=str(amount),
        )

    async def cancel_listing(
        self,
        token_id: str,
        contract_address: str,
        owner_address: str,
        network: str,
    ) -> TransactionReceipt:
        """Simulate withdrawing an item's listing (no on-chain effect)"""
        require(
            token_id=token_id,
            contract_address=contract_address,
            owner_address=owner_address,
            network=network,
        )
        network = self.resolver.resolve(network).name
        logger.info(f"[simulated] {owner_address} cancelling listing of {contract_address}#{token_id} on {network}")

        await asyncio.sleep(self.cancel_delay)

        return TransactionReceipt(
            success=True,
            action="cancel",
            transaction_hash=self.market.transaction_hash(),
            token_id=token_id,
            contract_address=contract_address,
            network=network,
        )
