from __future__ import annotations

from .chain_registry import RegistryCache
from .gateway import GatewayClient

__all__ = ["GatewayClient", "RegistryCache"]
