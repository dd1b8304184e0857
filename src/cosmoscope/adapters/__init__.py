from __future__ import annotations

from .price_adapters import BasePriceAdapter, CoinGeckoPriceAdapter

__all__ = ["BasePriceAdapter", "CoinGeckoPriceAdapter"]
