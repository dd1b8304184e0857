"""Domain models for balance aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class RestEndpoint:
    """Candidate REST gateway for a network."""

    address: str


@dataclass(frozen=True)
class ChainInfo:
    """Subset of a chain-registry ``chain.json`` used for querying."""

    chain_name: str
    bech32_prefix: str
    rest: tuple[RestEndpoint, ...] = ()

    @classmethod
    def from_registry(cls, data: dict[str, Any]) -> ChainInfo:
        """Build from a decoded ``chain.json`` document.

        Raises:
            ValueError: If the document, or its ``apis`` section, is not a
                JSON object, or ``apis.rest`` is not a list.
        """
        if not isinstance(data, dict):
            raise ValueError("chain.json must be a JSON object")
        apis = data.get("apis") or {}
        if not isinstance(apis, dict):
            raise ValueError(f"chain.json apis must be an object, got {type(apis).__name__}")
        rest_entries = apis.get("rest") or []
        if not isinstance(rest_entries, list):
            raise ValueError(
                f"chain.json apis.rest must be a list, got {type(rest_entries).__name__}"
            )
        return cls(
            chain_name=str(data.get("chain_name", "")),
            bech32_prefix=str(data.get("bech32_prefix", "")),
            rest=tuple(
                RestEndpoint(address=str(entry["address"]).rstrip("/"))
                for entry in rest_entries
                if isinstance(entry, dict) and entry.get("address")
            ),
        )


@dataclass(frozen=True)
class DenomUnit:
    denom: str
    exponent: int


@dataclass(frozen=True)
class Asset:
    """Registry asset entry; ``base`` is the on-chain denom."""

    base: str
    display: str
    symbol: str
    denom_units: tuple[DenomUnit, ...] = ()

    @property
    def display_exponent(self) -> int | None:
        for unit in self.denom_units:
            if unit.denom == self.display:
                return unit.exponent
        return None


@dataclass(frozen=True)
class AssetList:
    """Subset of a chain-registry ``assetlist.json``."""

    chain_name: str
    assets: tuple[Asset, ...] = ()

    @classmethod
    def from_registry(cls, data: dict[str, Any]) -> AssetList:
        """Build from a decoded ``assetlist.json`` document.

        Raises:
            ValueError: If the document is not a JSON object or an exponent
                is not an integer.
        """
        if not isinstance(data, dict):
            raise ValueError("assetlist.json must be a JSON object")
        assets = []
        for entry in data.get("assets") or []:
            if not isinstance(entry, dict) or "base" not in entry:
                continue
            units = tuple(
                DenomUnit(denom=str(unit.get("denom", "")), exponent=int(unit.get("exponent", 0)))
                for unit in entry.get("denom_units") or []
                if isinstance(unit, dict)
            )
            assets.append(
                Asset(
                    base=str(entry["base"]),
                    display=str(entry.get("display", "")),
                    symbol=str(entry.get("symbol", entry["base"])),
                    denom_units=units,
                )
            )
        return cls(chain_name=str(data.get("chain_name", "")), assets=tuple(assets))

    def find(self, denom: str) -> Asset | None:
        return next((asset for asset in self.assets if asset.base == denom), None)


@dataclass(frozen=True)
class CoinAmount:
    """A raw ``{denom, amount}`` pair as returned by the REST gateway."""

    denom: str
    amount: str


@dataclass(frozen=True)
class BalanceRecord:
    """A normalized balance emitted to the result stream."""

    network: str
    account: str
    hex_address: str
    token: str
    amount: Decimal
    usd_value: float
    decimals: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "account": self.account,
            "hex_address": self.hex_address,
            "token": self.token,
            "amount": str(self.amount),
            "usd_value": self.usd_value,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class BalanceSummary:
    """Totals computed from a set of balance records."""

    by_token: dict[str, tuple[Decimal, float]] = field(default_factory=dict)
    by_network: dict[str, float] = field(default_factory=dict)
    total_usd: float = 0.0
