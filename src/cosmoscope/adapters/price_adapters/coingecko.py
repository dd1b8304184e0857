from __future__ import annotations

import asyncio
import logging

import backoff
import requests

from cosmoscope.settings import CosmoscopeSettings

from .base import BasePriceAdapter

logger = logging.getLogger(__name__)


def _should_giveup(exc: Exception) -> bool:
    return (
        isinstance(exc, requests.exceptions.HTTPError)
        and exc.response is not None
        and exc.response.status_code not in {429, 500, 502, 503, 504}
    )


class CoinGeckoPriceAdapter(BasePriceAdapter):
    """USD prices from the CoinGecko ``simple/price`` endpoint.

    All configured ids are fetched in one batched request.
    """

    def __init__(self, config: CosmoscopeSettings, *, max_tries: int = 4):
        super().__init__(config)
        self.api_url = config.coingecko_url
        self.timeout = config.request_timeout
        self.max_tries = max_tries
        self._ids_by_symbol = config.price_ids

    @property
    def adapter_name(self) -> str:
        return "coingecko"

    async def _fetch(self, ids: list[str]) -> dict:
        @backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=self.max_tries,
            giveup=_should_giveup,
            jitter=backoff.full_jitter,
        )
        async def _get_with_retry() -> dict:
            response = await asyncio.to_thread(
                requests.get,
                f"{self.api_url}/simple/price",
                params={"ids": ",".join(sorted(ids)), "vs_currencies": "usd"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()

        return await _get_with_retry()

    async def initialize(self) -> None:
        """Fetch prices for every known symbol.

        A failed fetch is logged and leaves the price table empty; balances are
        still reported, only with a zero USD value.
        """
        ids = set(self._ids_by_symbol.values())
        if not ids:
            return

        try:
            payload = await self._fetch(list(ids))
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.error("Failed to fetch prices from CoinGecko: %s", exc)
            return
        if not isinstance(payload, dict):
            logger.error("Unexpected CoinGecko payload: %r", payload)
            return

        for symbol, coin_id in self._ids_by_symbol.items():
            entry = payload.get(coin_id)
            if not isinstance(entry, dict) or "usd" not in entry:
                logger.debug("No USD price for %s (%s)", symbol, coin_id)
                continue
            self.prices[symbol] = float(entry["usd"])

        logger.info("Loaded %d USD prices from CoinGecko", len(self.prices))
