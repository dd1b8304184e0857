from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...settings import CosmoscopeSettings


class BasePriceAdapter(ABC):
    """Abstract base class for USD price sources.

    ``initialize`` is awaited once before aggregation starts; afterwards
    ``usd_value`` is a pure in-memory lookup that never fails.
    """

    def __init__(self, config: CosmoscopeSettings):
        """Initialize the adapter with configuration."""
        self.config = config
        self.prices: dict[str, float] = {}

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def initialize(self) -> None:
        """Populate ``self.prices`` (symbol -> USD price)."""
        ...

    def usd_value(self, symbol: str, amount: Decimal) -> float:
        """Return ``amount`` of ``symbol`` in USD, or 0.0 for unpriced symbols."""
        price = self.prices.get(symbol.upper())
        if price is None:
            return 0.0
        return float(amount) * price
