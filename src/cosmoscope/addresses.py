"""Bech32 account address helpers."""

from __future__ import annotations

from bech32 import bech32_decode, bech32_encode, convertbits

from .errors import SkippedPairError


class AddressConversionError(SkippedPairError):
    """The address is not valid bech32."""


def _decode(address: str) -> tuple[str, list[int]]:
    hrp, data = bech32_decode(address)
    if hrp is None or data is None:
        raise AddressConversionError(f"invalid bech32 address: {address!r}")
    return hrp, data


def convert_address(address: str, prefix: str) -> str:
    """Re-encode ``address`` with the bech32 ``prefix`` of another network.

    The underlying account bytes are unchanged, so ``cosmos1...`` and
    ``osmo1...`` forms of the same key map onto each other.

    Raises:
        AddressConversionError: If ``address`` is not valid bech32.
    """
    hrp, data = _decode(address)
    if hrp == prefix:
        return address
    return bech32_encode(prefix, data)


def hex_address(address: str) -> str:
    """Return the raw account bytes of a bech32 address as lowercase hex.

    Raises:
        AddressConversionError: If ``address`` is not valid bech32.
    """
    _, data = _decode(address)
    raw = convertbits(data, 5, 8, False)
    if raw is None:
        raise AddressConversionError(f"invalid bech32 payload: {address!r}")
    return bytes(raw).hex()
