from __future__ import annotations

from .base import BasePriceAdapter
from .coingecko import CoinGeckoPriceAdapter

__all__ = ["BasePriceAdapter", "CoinGeckoPriceAdapter"]
