from __future__ import annotations

from decimal import Decimal
from typing import AsyncIterable

from ..adapters.price_adapters.base import BasePriceAdapter
from ..domain import BalanceRecord, BalanceSummary
from ..settings import FixedBalance


def fixed_balance_records(
    fixed: list[FixedBalance], prices: BasePriceAdapter
) -> list[BalanceRecord]:
    """Turn manually configured holdings into balance records.

    Fixed amounts are already in display units, so ``decimals`` is 0.
    """
    return [
        BalanceRecord(
            network=entry.network,
            account=entry.account,
            hex_address="",
            token=entry.token.upper(),
            amount=entry.amount,
            usd_value=prices.usd_value(entry.token, entry.amount),
            decimals=0,
        )
        for entry in fixed
    ]


async def collect_balances(stream: AsyncIterable[BalanceRecord]) -> list[BalanceRecord]:
    """Drain ``stream`` until it is closed."""
    return [record async for record in stream]


def summarize(records: list[BalanceRecord]) -> BalanceSummary:
    by_token: dict[str, tuple[Decimal, float]] = {}
    by_network: dict[str, float] = {}

    for record in records:
        amount, usd = by_token.get(record.token, (Decimal(0), 0.0))
        by_token[record.token] = (amount + record.amount, usd + record.usd_value)
        by_network[record.network] = by_network.get(record.network, 0.0) + record.usd_value

    return BalanceSummary(
        by_token=by_token,
        by_network=by_network,
        total_usd=sum(record.usd_value for record in records),
    )
