from __future__ import annotations

from .denoms import DenomResolver, heuristic_symbol, scale_amount
from .endpoint_selector import EndpointSelector
from .portfolio import collect_balances, fixed_balance_records, summarize

__all__ = [
    "DenomResolver",
    "EndpointSelector",
    "collect_balances",
    "fixed_balance_records",
    "heuristic_symbol",
    "scale_amount",
    "summarize",
]
