from __future__ import annotations

import asyncio
from typing import Iterable

from ..clients.gateway import GatewayClient
from ..constants import DEFAULT_PROBE_TIMEOUT, DEFAULT_SELECTION_TIMEOUT
from ..domain import RestEndpoint
from ..logger import get_logger

logger = get_logger(__name__)


class EndpointSelector:
    """Race health probes against candidate REST endpoints.

    The first probe to succeed wins, regardless of its position in the
    candidate list. Probes still running when a winner is found, or when the
    overall deadline expires, are left to finish on their own and their
    results are dropped. Their worker threads are not reclaimed early.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        *,
        overall_timeout: float = DEFAULT_SELECTION_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ):
        self.gateway = gateway
        self.overall_timeout = overall_timeout
        self.probe_timeout = probe_timeout
        # strong refs so detached probes are not garbage collected mid-flight
        self._stragglers: set[asyncio.Task[str | None]] = set()

    @property
    def outstanding_probes(self) -> int:
        return len(self._stragglers)

    async def _probe(self, endpoint: str, settled: asyncio.Event) -> str | None:
        try:
            healthy = await self.gateway.probe(
                endpoint, deadline=self.probe_timeout, skip_if=settled.is_set
            )
        except Exception as exc:
            logger.debug("Probe of %s raised: %s", endpoint, exc)
            return None
        if not healthy:
            return None
        # set before the task completes so queued probes see it when they get a slot
        settled.set()
        return endpoint

    async def select(self, candidates: Iterable[RestEndpoint | str]) -> str | None:
        """Return the first endpoint that answers the health probe, or None.

        Never waits longer than ``overall_timeout``. The per-probe deadline is
        enforced by the gateway from the moment a probe's request starts, so
        probes queued behind other selections are not timed out early. Probes
        that have not started by the time a winner is found are not sent.
        """
        addresses = [
            candidate.address if isinstance(candidate, RestEndpoint) else candidate
            for candidate in candidates
        ]
        if not addresses:
            return None

        settled = asyncio.Event()
        tasks = [asyncio.create_task(self._probe(address, settled)) for address in addresses]
        for task in tasks:
            self._stragglers.add(task)
            task.add_done_callback(self._stragglers.discard)

        try:
            for next_done in asyncio.as_completed(tasks, timeout=self.overall_timeout):
                endpoint = await next_done
                if endpoint is not None:
                    logger.debug("Selected endpoint %s out of %d", endpoint, len(addresses))
                    return endpoint
        except TimeoutError:
            logger.debug(
                "No endpoint answered within %.1fs (%d candidates)",
                self.overall_timeout,
                len(addresses),
            )
        finally:
            settled.set()
        return None
