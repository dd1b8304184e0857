"""CLI entrypoint for cosmoscope."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .logger import setup_logging
from .settings import CosmoscopeSettings, CosmosNetwork, OutputFormat
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Aggregate account balances across Cosmos SDK networks.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("cosmoscope")


def _parse_network(value: str) -> CosmosNetwork:
    """Parse ``name:prefix`` as given on the command line."""
    name, sep, prefix = value.partition(":")
    if not sep or not name or not prefix:
        raise typer.BadParameter(
            f"expected NAME:PREFIX, got {value!r}", param_hint="--network"
        )
    return CosmosNetwork(name=name, prefix=prefix)


@app.callback(invoke_without_command=True)
def report(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [cosmoscope] table).",
        ),
    ] = None,
    networks: Annotated[
        list[str] | None,
        typer.Option(
            "--network",
            "-n",
            help="Network to query as NAME:PREFIX (e.g. osmosis:osmo). Repeatable; replaces configured networks.",
        ),
    ] = None,
    addresses: Annotated[
        list[str] | None,
        typer.Option(
            "--address",
            "-a",
            help="Bech32 account address. Repeatable; replaces configured addresses.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format (table or json).",
        ),
    ] = None,
    min_usd_value: Annotated[
        float | None,
        typer.Option(
            "--min-usd",
            help="Hide balances worth less than this many USD from the table.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config and exit.",
        ),
    ] = False,
):
    """Query every configured network for every configured address and print the balances."""
    if config_path:
        os.environ["COSMOSCOPE_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if networks:
        init_kwargs["cosmos_networks"] = [_parse_network(value) for value in networks]
    if addresses:
        init_kwargs["cosmos_addresses"] = list(addresses)
    if output_format is not None:
        init_kwargs["output_format"] = output_format
    if min_usd_value is not None:
        init_kwargs["min_usd_value"] = min_usd_value
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = CosmoscopeSettings(**init_kwargs)

    setup_logging(settings.log_level)
    logger = _build_logger()
    state = AppState(settings=settings, logger=logger)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if not settings.cosmos_networks:
        raise typer.BadParameter(
            "at least one network must be configured",
            param_hint=["--network", "COSMOSCOPE_COSMOS_NETWORKS"],
        )
    if not settings.cosmos_addresses and not settings.fixed_balances:
        raise typer.BadParameter(
            "at least one address must be configured",
            param_hint=["--address", "COSMOSCOPE_COSMOS_ADDRESSES"],
        )

    from .pipeline.run import run_report

    asyncio.run(run_report(state))


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
