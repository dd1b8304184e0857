"""Client for the Cosmos SDK REST gateway (gRPC-gateway routes)."""

from __future__ import annotations

import asyncio
import functools
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import requests

from ..constants import (
    BANK_BALANCES_PATH,
    DEFAULT_PROBE_CONCURRENCY,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_QUERY_CONCURRENCY,
    DEFAULT_REQUEST_TIMEOUT,
    DISTRIBUTION_REWARDS_PATH,
    NODE_INFO_PATH,
    STAKING_DELEGATIONS_PATH,
)
from ..domain import CoinAmount
from ..errors import DecodeError, TransportError
from ..logger import TRACE, get_logger

logger = get_logger(__name__)


def _coin(entry: Any) -> CoinAmount:
    if not isinstance(entry, dict) or "denom" not in entry or "amount" not in entry:
        raise DecodeError(f"malformed coin entry: {entry!r}")
    return CoinAmount(denom=str(entry["denom"]), amount=str(entry["amount"]))


class BlockingCallPool:
    """Run blocking calls on a private thread pool, a bounded number at a time.

    A slot is taken before a call is submitted and handed back only when the
    worker thread returns, even if the awaiting coroutine has given up on it.
    The executor never queues work, so ``deadline`` measures the call itself
    and not the time spent waiting behind other calls.
    """

    def __init__(self, max_workers: int, *, name: str):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=name
        )
        self._slots = asyncio.Semaphore(max_workers)

    async def run(
        self,
        fn: Callable[..., Any],
        /,
        *args: Any,
        deadline: float | None = None,
        skip_if: Callable[[], bool] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Call ``fn`` in a worker thread once a slot is free.

        Returns None without calling ``fn`` when ``skip_if`` is true by the
        time a slot frees up.

        Raises:
            TimeoutError: If ``deadline`` seconds pass after the call started.
        """
        await self._slots.acquire()
        if skip_if is not None and skip_if():
            self._slots.release()
            return None

        loop = asyncio.get_running_loop()
        try:
            future = self._executor.submit(functools.partial(fn, *args, **kwargs))
        except BaseException:
            self._slots.release()
            raise

        def _release(_: Future) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(self._slots.release)

        # chained first, so the caller resumes before a queued call takes the slot
        waiter = asyncio.wrap_future(future)
        future.add_done_callback(_release)
        if deadline is None:
            return await waiter
        async with asyncio.timeout(deadline):
            return await waiter

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class GatewayClient:
    """Thin async wrapper around blocking ``requests`` calls.

    Probes and balance queries run on separate bounded pools so a burst of
    probes cannot starve queries, and the reverse. Each query method raises
    ``TransportError`` or ``DecodeError``; deciding how a failure degrades is
    left to the caller.
    """

    def __init__(
        self,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        query_concurrency: int = DEFAULT_QUERY_CONCURRENCY,
        probe_concurrency: int = DEFAULT_PROBE_CONCURRENCY,
    ):
        self.request_timeout = request_timeout
        self.probe_timeout = probe_timeout
        self._queries = BlockingCallPool(query_concurrency, name="cosmoscope-query")
        self._probes = BlockingCallPool(probe_concurrency, name="cosmoscope-probe")

    def close(self) -> None:
        self._queries.close()
        self._probes.close()

    async def probe(
        self,
        endpoint: str,
        *,
        deadline: float | None = None,
        skip_if: Callable[[], bool] | None = None,
    ) -> bool:
        """Return True if ``endpoint`` answers the node-info route with HTTP 200.

        ``deadline`` (default: the probe timeout) starts once the request is
        actually running. When ``skip_if`` turns true while the probe waits
        for a free slot, no request is sent and the probe counts as failed.
        """
        url = f"{endpoint}{NODE_INFO_PATH}"
        deadline = self.probe_timeout if deadline is None else deadline
        try:
            response = await self._probes.run(
                requests.get,
                url,
                timeout=self.probe_timeout,
                deadline=deadline,
                skip_if=skip_if,
            )
        except TimeoutError:
            logger.log(TRACE, "Probe of %s exceeded %.1fs", endpoint, deadline)
            return False
        except requests.RequestException as exc:
            logger.log(TRACE, "Probe of %s failed: %s", endpoint, exc)
            return False
        if response is None:
            logger.log(TRACE, "Probe of %s skipped, selection already settled", endpoint)
            return False
        if response.status_code != 200:
            logger.log(TRACE, "Probe of %s returned status %d", endpoint, response.status_code)
            return False
        return True

    async def _get_json(self, url: str) -> dict[str, Any]:
        try:
            response = await self._queries.run(
                requests.get, url, timeout=self.request_timeout
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"GET {url} returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise DecodeError(f"GET {url} returned {type(payload).__name__}, expected object")
        return payload

    async def bank_balances(self, endpoint: str, address: str) -> list[CoinAmount]:
        url = endpoint + BANK_BALANCES_PATH.format(address=address)
        payload = await self._get_json(url)
        balances = payload.get("balances")
        if not isinstance(balances, list):
            raise DecodeError(f"bank response for {address} has no balances list")
        return [_coin(entry) for entry in balances]

    async def delegations(self, endpoint: str, address: str) -> list[CoinAmount]:
        url = endpoint + STAKING_DELEGATIONS_PATH.format(address=address)
        payload = await self._get_json(url)
        responses = payload.get("delegation_responses")
        if not isinstance(responses, list):
            raise DecodeError(f"staking response for {address} has no delegation_responses")
        return [
            _coin(item.get("balance") if isinstance(item, dict) else None)
            for item in responses
        ]

    async def rewards(self, endpoint: str, address: str) -> list[list[CoinAmount]]:
        """Return pending rewards grouped per validator, as the gateway reports them."""
        url = endpoint + DISTRIBUTION_REWARDS_PATH.format(address=address)
        payload = await self._get_json(url)
        rewards = payload.get("rewards")
        if not isinstance(rewards, list):
            raise DecodeError(f"rewards response for {address} has no rewards list")
        grouped: list[list[CoinAmount]] = []
        for validator_reward in rewards:
            if not isinstance(validator_reward, dict):
                raise DecodeError(f"malformed validator reward: {validator_reward!r}")
            grouped.append([_coin(entry) for entry in validator_reward.get("reward") or []])
        return grouped
