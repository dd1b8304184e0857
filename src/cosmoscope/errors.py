"""Exception types shared across the aggregation pipeline.

Every error is handled at the narrowest scope it affects: a category query, or a
single (network, address) pair. None of them aborts the whole aggregation.
"""

from __future__ import annotations


class CosmoscopeError(Exception):
    """Base class for pipeline errors."""


class TransportError(CosmoscopeError):
    """Network unreachable, timed out, or answered with an error status."""


class DecodeError(CosmoscopeError):
    """Response body was not the expected JSON document."""


class RegistryFetchError(CosmoscopeError):
    """Chain-registry lookup failed; ``kind`` is ``"transport"`` or ``"decode"``."""

    def __init__(self, network: str, kind: str, message: str):
        super().__init__(f"registry fetch for {network} failed ({kind}): {message}")
        self.network = network
        self.kind = kind


class EndpointNotFoundError(CosmoscopeError):
    """No candidate REST endpoint answered the health probe in time."""


class SkippedPairError(CosmoscopeError):
    """A (network, address) pair was skipped before any query was issued."""


class StreamClosedError(CosmoscopeError):
    """Raised when writing to or closing an already closed balance stream."""
