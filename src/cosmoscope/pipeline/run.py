"""High-level pipeline orchestration."""

from __future__ import annotations

from ..adapters import CoinGeckoPriceAdapter
from ..adapters.price_adapters.base import BasePriceAdapter
from ..clients.chain_registry import RegistryCache
from ..clients.gateway import GatewayClient
from ..domain import BalanceRecord
from ..processors import (
    DenomResolver,
    EndpointSelector,
    collect_balances,
    fixed_balance_records,
)
from ..report import publish_to_stdout
from ..settings import CosmoscopeSettings, CosmosNetwork
from ..state import AppState
from .aggregate import AggregationDriver
from .query import QueryOrchestrator


def build_pairs(settings: CosmoscopeSettings) -> list[tuple[CosmosNetwork, str]]:
    """Every configured network crossed with every configured address."""
    return [
        (network, address)
        for network in settings.cosmos_networks
        for address in settings.cosmos_addresses
    ]


def build_gateway(settings: CosmoscopeSettings) -> GatewayClient:
    return GatewayClient(
        request_timeout=settings.request_timeout,
        probe_timeout=settings.probe_timeout,
        query_concurrency=settings.query_concurrency,
        probe_concurrency=settings.probe_concurrency,
    )


def build_driver(
    settings: CosmoscopeSettings, prices: BasePriceAdapter, gateway: GatewayClient
) -> AggregationDriver:
    """Wire the registry cache, gateway, selector and orchestrator together."""
    registry = RegistryCache(settings.registry_url, timeout=settings.request_timeout)
    selector = EndpointSelector(
        gateway,
        overall_timeout=settings.selection_timeout,
        probe_timeout=settings.probe_timeout,
    )
    orchestrator = QueryOrchestrator(gateway, DenomResolver(registry), prices)
    return AggregationDriver(
        registry, selector, orchestrator, capacity=settings.stream_capacity
    )


async def collect_report(state: AppState) -> list[BalanceRecord]:
    """Initialize prices, aggregate every pair and drain the result stream."""
    s = state.settings
    log = state.logger

    prices = CoinGeckoPriceAdapter(s)
    log.info("Initializing prices via %s...", prices.adapter_name)
    await prices.initialize()

    pairs = build_pairs(s)
    fixed = fixed_balance_records(s.fixed_balances, prices)
    if fixed:
        log.info("Adding %d fixed balances", len(fixed))

    gateway = build_gateway(s)
    try:
        driver = build_driver(s, prices, gateway)
        stream = driver.aggregate(pairs, pre_records=fixed)
        records = await collect_balances(stream)
        if driver.done is not None:
            await driver.done
    finally:
        gateway.close()

    log.info("Aggregation finished with %d records", len(records))
    return records


async def run_report(state: AppState) -> list[BalanceRecord]:
    """Execute the complete pipeline and print the report.

    1. Price initialization
    2. Fan-out over network/address pairs
    3. Collection
    4. Publication
    """
    s = state.settings
    if not s.cosmos_networks or not s.cosmos_addresses:
        state.logger.warning("No cosmos networks or addresses configured")

    records = await collect_report(state)
    publish_to_stdout(records, s.output_format, min_usd_value=s.min_usd_value)
    return records
