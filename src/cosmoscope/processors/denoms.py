from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..clients.chain_registry import RegistryCache
from ..constants import ATTO_EXPONENT, DEFAULT_EXPONENT, UNKNOWN_IBC_SUFFIX
from ..errors import RegistryFetchError
from ..logger import get_logger

logger = get_logger(__name__)


def heuristic_symbol(denom: str) -> tuple[str, int]:
    """Guess a display symbol and exponent from the shape of a denom.

    ``u`` (micro) denoms use 6 decimals and ``a`` (atto) denoms use 18.
    """
    if denom.startswith("ibc/"):
        return denom + UNKNOWN_IBC_SUFFIX, DEFAULT_EXPONENT
    if denom.startswith("u"):
        return denom.lstrip("u").upper(), DEFAULT_EXPONENT
    if denom.startswith("a"):
        return denom.lstrip("a").upper(), ATTO_EXPONENT
    return denom, DEFAULT_EXPONENT


def scale_amount(raw: Decimal | str, exponent: int) -> Decimal:
    """Convert a base-unit amount into display units.

    Raises:
        ValueError: If ``raw`` is not a finite, non-negative number.
    """
    try:
        value = raw if isinstance(raw, Decimal) else Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount {raw!r}") from exc
    if not value.is_finite() or value < 0:
        raise ValueError(f"invalid amount {raw!r}")
    return value.scaleb(-exponent)


class DenomResolver:
    """Map an on-chain denom to ``(symbol, exponent)``.

    Prefers the registry asset list of the network and falls back to
    ``heuristic_symbol``. Never raises.
    """

    def __init__(self, registry: RegistryCache):
        self.registry = registry

    async def resolve(self, network: str, denom: str) -> tuple[str, int]:
        try:
            asset_list = await self.registry.get_asset_list(network)
        except RegistryFetchError as exc:
            logger.debug("Asset list unavailable for %s, using heuristics: %s", network, exc)
            return heuristic_symbol(denom)

        asset = asset_list.find(denom)
        if asset is None:
            return heuristic_symbol(denom)

        exponent = asset.display_exponent
        if exponent is None:
            logger.debug(
                "Asset %s on %s has no denom unit for display %r, assuming %d decimals",
                denom,
                network,
                asset.display,
                DEFAULT_EXPONENT,
            )
            return asset.symbol, DEFAULT_EXPONENT
        return asset.symbol, exponent
