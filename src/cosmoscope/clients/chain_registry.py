"""Cached client for the Cosmos chain registry.

Resolves a network key (registry slug, e.g. ``osmosis``) to its ``chain.json``
and ``assetlist.json`` documents. Entries are cached for the lifetime of the
cache object and never refreshed.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, TypeVar

import requests

from ..constants import (
    ASSET_LIST_FILE,
    CHAIN_INFO_FILE,
    CHAIN_REGISTRY_URL,
    DEFAULT_REQUEST_TIMEOUT,
)
from ..domain import AssetList, ChainInfo
from ..errors import RegistryFetchError
from ..logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RegistryCache:
    """Get-or-fetch cache over the chain registry.

    The maps are guarded by a lock, but the HTTP fetch runs outside of it.
    Two concurrent misses for the same key may therefore both fetch; the
    last writer wins, which is harmless since the documents are identical.
    Failed fetches are never cached.
    """

    def __init__(
        self,
        base_url: str = CHAIN_REGISTRY_URL,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._chain_infos: dict[str, ChainInfo] = {}
        self._asset_lists: dict[str, AssetList] = {}
        self._lock = threading.Lock()
        self.fetch_count = 0

    async def get_chain_info(self, network: str) -> ChainInfo:
        """Return the ChainInfo for ``network``.

        Raises:
            RegistryFetchError: On transport or decode failure.
        """
        return await self._get_or_fetch(
            self._chain_infos, network, CHAIN_INFO_FILE, ChainInfo.from_registry
        )

    async def get_asset_list(self, network: str) -> AssetList:
        """Return the AssetList for ``network``.

        Raises:
            RegistryFetchError: On transport or decode failure.
        """
        return await self._get_or_fetch(
            self._asset_lists, network, ASSET_LIST_FILE, AssetList.from_registry
        )

    def cached_networks(self) -> set[str]:
        with self._lock:
            return set(self._chain_infos)

    async def _get_or_fetch(
        self,
        cache: dict[str, T],
        network: str,
        filename: str,
        parse: Callable[[dict[str, Any]], T],
    ) -> T:
        with self._lock:
            cached = cache.get(network)
        if cached is not None:
            return cached

        url = f"{self.base_url}/{network}/{filename}"
        logger.debug("Fetching %s for %s", filename, network)
        with self._lock:
            self.fetch_count += 1

        try:
            response = await asyncio.to_thread(requests.get, url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RegistryFetchError(network, "transport", str(exc)) from exc

        try:
            value = parse(response.json())
        except (ValueError, TypeError, KeyError) as exc:
            raise RegistryFetchError(network, "decode", str(exc)) from exc

        with self._lock:
            cache[network] = value
        return value
