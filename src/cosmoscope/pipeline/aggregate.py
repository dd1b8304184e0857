"""Fan-out of per-pair workers and fan-in onto one bounded stream."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable, cast

from ..addresses import convert_address, hex_address
from ..clients.chain_registry import RegistryCache
from ..constants import DEFAULT_STREAM_CAPACITY
from ..domain import BalanceRecord
from ..errors import CosmoscopeError, EndpointNotFoundError, StreamClosedError
from ..logger import get_logger
from ..processors.endpoint_selector import EndpointSelector
from ..settings import CosmosNetwork
from .query import QueryOrchestrator

logger = get_logger(__name__)

_CLOSED = object()


class BalanceStream:
    """Bounded many-producer, single-consumer channel of BalanceRecords.

    Producers ``put`` records; a single designated closer calls ``close``
    once every producer has finished. Consumers iterate with ``async for``
    until the stream is closed.
    """

    def __init__(self, capacity: int = DEFAULT_STREAM_CAPACITY):
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=capacity)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, record: BalanceRecord) -> None:
        if self._closed:
            raise StreamClosedError(f"cannot emit {record.network} record: stream closed")
        await self._queue.put(record)

    async def close(self) -> None:
        if self._closed:
            raise StreamClosedError("stream already closed")
        self._closed = True
        await self._queue.put(_CLOSED)

    def __aiter__(self) -> BalanceStream:
        return self

    async def __anext__(self) -> BalanceRecord:
        if self._drained:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise StopAsyncIteration
        return cast(BalanceRecord, item)


class AggregationDriver:
    """Spawn one worker per (network, address) pair and merge their output.

    A pair is skipped on its own when its address cannot be converted, its
    chain info cannot be fetched, or no REST endpoint answers. A supervisor
    task closes the stream once every worker has terminated.
    """

    def __init__(
        self,
        registry: RegistryCache,
        selector: EndpointSelector,
        orchestrator: QueryOrchestrator,
        *,
        capacity: int = DEFAULT_STREAM_CAPACITY,
        convert: Callable[[str, str], str] = convert_address,
        to_hex: Callable[[str], str] = hex_address,
    ):
        self.registry = registry
        self.selector = selector
        self.orchestrator = orchestrator
        self.capacity = capacity
        self._convert = convert
        self._to_hex = to_hex
        self.done: asyncio.Task[None] | None = None

    def aggregate(
        self,
        pairs: Iterable[tuple[CosmosNetwork, str]],
        *,
        pre_records: Iterable[BalanceRecord] = (),
    ) -> BalanceStream:
        """Start all workers and return the stream they write to.

        Must be called from inside a running event loop. ``pre_records`` are
        put on the stream by the supervisor ahead of the worker output.
        """
        stream = BalanceStream(self.capacity)
        workers = [
            asyncio.create_task(
                self._run_pair(network, address, stream),
                name=f"balances:{network.name}:{address}",
            )
            for network, address in pairs
        ]
        logger.info("Querying %d network/address pairs", len(workers))
        self.done = asyncio.create_task(self._supervise(workers, stream, list(pre_records)))
        return stream

    async def _supervise(
        self,
        workers: list[asyncio.Task[None]],
        stream: BalanceStream,
        pre_records: list[BalanceRecord],
    ) -> None:
        try:
            for record in pre_records:
                await stream.put(record)
            results = await asyncio.gather(*workers, return_exceptions=True)
            for worker, result in zip(workers, results):
                if isinstance(result, BaseException):
                    logger.error("Worker %s failed: %r", worker.get_name(), result)
        finally:
            await stream.close()

    async def _run_pair(self, network: CosmosNetwork, address: str, sink: BalanceStream) -> None:
        try:
            await self._query_pair(network, address, sink)
        except CosmoscopeError as exc:
            logger.warning("Skipping %s for %s: %s", network.name, address, exc)

    async def _query_pair(self, network: CosmosNetwork, address: str, sink: BalanceStream) -> None:
        account = self._convert(address, network.prefix)
        account_hex = self._to_hex(account)

        chain_info = await self.registry.get_chain_info(network.name)
        if not chain_info.rest:
            raise EndpointNotFoundError(f"no REST endpoints registered for {network.name}")

        endpoint = await self.selector.select(chain_info.rest)
        if endpoint is None:
            raise EndpointNotFoundError(
                f"none of {len(chain_info.rest)} REST endpoints for {network.name} responded"
            )

        logger.debug("Using %s for %s", endpoint, network.name)
        await self.orchestrator.run(network.name, account, account_hex, endpoint, sink)
