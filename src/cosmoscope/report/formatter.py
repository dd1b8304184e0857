"""Rich console formatter for balance reports."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import BalanceRecord, BalanceSummary


def _format_amount(amount: Decimal) -> str:
    """Format a token amount with up to 6 decimals and comma separators."""
    return f"{amount:,.6f}"


def _format_usd(value: float) -> str:
    return f"${value:,.2f}"


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    if len(address) <= 20:
        return address
    return f"{address[:12]}...{address[-6:]}"


def build_balances_table(records: list[BalanceRecord], min_usd_value: float = 0.0) -> Table:
    """Build the per-record table, largest USD value first.

    Records below ``min_usd_value`` are left out of the table but still
    count towards the summary.
    """
    table = Table(title=None, expand=True, show_lines=False)
    table.add_column("Network", style="cyan", no_wrap=True)
    table.add_column("Account", style="dim")
    table.add_column("Token", style="magenta")
    table.add_column("Amount", justify="right")
    table.add_column("Value (USD)", justify="right", style="green")

    shown = sorted(
        (record for record in records if record.usd_value >= min_usd_value),
        key=lambda record: (-record.usd_value, record.network, record.token),
    )
    for record in shown:
        table.add_row(
            record.network,
            _truncate_address(record.account),
            record.token,
            _format_amount(record.amount),
            _format_usd(record.usd_value),
        )
    return table


def build_summary_tables(summary: BalanceSummary) -> tuple[Table, Table]:
    token_table = Table(expand=True)
    token_table.add_column("Token", style="magenta")
    token_table.add_column("Amount", justify="right")
    token_table.add_column("Value (USD)", justify="right", style="green")
    for token, (amount, usd) in sorted(summary.by_token.items(), key=lambda item: -item[1][1]):
        token_table.add_row(token, _format_amount(amount), _format_usd(usd))

    network_table = Table(expand=True)
    network_table.add_column("Network", style="cyan")
    network_table.add_column("Value (USD)", justify="right", style="green")
    for network, usd in sorted(summary.by_network.items(), key=lambda item: -item[1]):
        network_table.add_row(network, _format_usd(usd))
    network_table.add_row("[bold]TOTAL[/]", f"[bold]{_format_usd(summary.total_usd)}[/]")

    return token_table, network_table


def format_report_table(
    records: list[BalanceRecord],
    summary: BalanceSummary,
    *,
    min_usd_value: float = 0.0,
    generated_at: datetime | None = None,
    console: Console | None = None,
) -> None:
    """Print the balances dashboard to stdout."""
    console = console or Console()
    timestamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    balances_panel = Panel(
        build_balances_table(records, min_usd_value),
        title=f"[bold]Balances ({len(records)} records)[/]",
        border_style="cyan",
    )
    token_table, network_table = build_summary_tables(summary)
    summary_panel = Panel(
        Group(token_table, "", network_table),
        title="[bold]Summary[/]",
        border_style="green",
    )

    outer_panel = Panel(
        Group(balances_panel, "", summary_panel),
        title=f"[bold white]Balances Report ({timestamp})[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
