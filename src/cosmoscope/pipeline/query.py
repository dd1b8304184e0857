"""Per-(network, address) balance queries."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from ..adapters.price_adapters.base import BasePriceAdapter
from ..clients.gateway import GatewayClient
from ..constants import CATEGORY_BANK, CATEGORY_REWARDS, CATEGORY_STAKING
from ..domain import BalanceRecord, CoinAmount
from ..errors import DecodeError, TransportError
from ..logger import get_logger
from ..processors.denoms import DenomResolver, scale_amount

logger = get_logger(__name__)

T = TypeVar("T")


def sum_rewards(grouped: Sequence[Sequence[CoinAmount]]) -> dict[str, Decimal]:
    """Sum per-validator rewards into one raw amount per denom.

    Amounts that do not parse as decimals are logged and dropped.
    """
    totals: dict[str, Decimal] = {}
    for validator_rewards in grouped:
        for coin in validator_rewards:
            try:
                amount = Decimal(coin.amount)
            except InvalidOperation:
                logger.warning("Ignoring unparseable reward amount %r for %s", coin.amount, coin.denom)
                continue
            totals[coin.denom] = totals.get(coin.denom, Decimal(0)) + amount
    return totals


class QueryOrchestrator:
    """Query bank, staking and rewards for one account on one network.

    Staking and rewards are only queried when the bank query returned at
    least one balance; an account without liquid balance is treated as
    inactive on that network. A failing category is logged and counts as
    empty, it never stops the remaining categories.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        resolver: DenomResolver,
        prices: BasePriceAdapter,
    ):
        self.gateway = gateway
        self.resolver = resolver
        self.prices = prices

    async def run(
        self,
        network: str,
        address: str,
        hex_address: str,
        endpoint: str,
        sink: Any,
    ) -> int:
        """Emit balance records for ``address`` onto ``sink``.

        Args:
            network: Registry key of the network, used for labels and denom lookups
            address: Account address in the network's bech32 form
            hex_address: Raw account bytes as hex, attached to every record
            endpoint: REST gateway already selected for the network
            sink: Object with an async ``put(record)`` method

        Returns:
            Number of records emitted
        """
        emitted = 0

        async def emit(category: str, denom: str, raw: Decimal | str) -> None:
            nonlocal emitted
            record = await self._build_record(network, category, address, hex_address, denom, raw)
            if record is not None:
                await sink.put(record)
                emitted += 1

        bank = await self._fetch(
            CATEGORY_BANK, network, address, lambda: self.gateway.bank_balances(endpoint, address)
        )
        for coin in bank:
            await emit(CATEGORY_BANK, coin.denom, coin.amount)

        if not bank:
            logger.debug("No bank balances for %s on %s, skipping staking and rewards", address, network)
            return emitted

        delegations = await self._fetch(
            CATEGORY_STAKING, network, address, lambda: self.gateway.delegations(endpoint, address)
        )
        for coin in delegations:
            await emit(CATEGORY_STAKING, coin.denom, coin.amount)

        rewards = await self._fetch(
            CATEGORY_REWARDS, network, address, lambda: self.gateway.rewards(endpoint, address)
        )
        for denom, total in sum_rewards(rewards).items():
            await emit(CATEGORY_REWARDS, denom, total)

        logger.debug("Emitted %d records for %s on %s", emitted, address, network)
        return emitted

    async def _fetch(
        self,
        category: str,
        network: str,
        address: str,
        query: Callable[[], Awaitable[list[T]]],
    ) -> list[T]:
        try:
            return await query()
        except (TransportError, DecodeError) as exc:
            logger.warning(
                "%s query for %s on %s failed, treating as empty: %s",
                category,
                address,
                network,
                exc,
            )
            return []

    async def _build_record(
        self,
        network: str,
        category: str,
        address: str,
        hex_address: str,
        denom: str,
        raw: Decimal | str,
    ) -> BalanceRecord | None:
        symbol, decimals = await self.resolver.resolve(network, denom)
        try:
            amount = scale_amount(raw, decimals)
        except ValueError as exc:
            logger.warning("Skipping %s %s balance on %s: %s", denom, category, network, exc)
            return None

        return BalanceRecord(
            network=f"{network}-{category}",
            account=address,
            hex_address=hex_address,
            token=symbol,
            amount=amount,
            usd_value=self.prices.usd_value(symbol, amount),
            decimals=decimals,
        )
