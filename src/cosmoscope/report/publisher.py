from __future__ import annotations

import json
import logging

from rich.console import Console

from ..domain import BalanceRecord
from ..processors.portfolio import summarize
from ..settings import OutputFormat
from .formatter import format_report_table

logger = logging.getLogger(__name__)


def publish_to_stdout(
    records: list[BalanceRecord],
    output_format: OutputFormat = OutputFormat.TABLE,
    *,
    min_usd_value: float = 0.0,
    console: Console | None = None,
) -> None:
    """Print the collected balances.

    Args:
        records: Every record drained from the balance stream
        output_format: TABLE for the rich dashboard, JSON for raw JSON
        min_usd_value: Hide table rows worth less than this (USD)
        console: Console to print to, defaults to stdout
    """
    summary = summarize(records)
    logger.info(
        "Collected %d balances worth %.2f USD across %d labels",
        len(records),
        summary.total_usd,
        len(summary.by_network),
    )

    if output_format == OutputFormat.JSON:
        data = {
            "balances": [record.as_dict() for record in records],
            "summary": {
                "by_token": {
                    token: {"amount": str(amount), "usd_value": usd}
                    for token, (amount, usd) in summary.by_token.items()
                },
                "by_network": summary.by_network,
                "total_usd": summary.total_usd,
            },
        }
        print(json.dumps(data, indent=2))
    else:
        format_report_table(records, summary, min_usd_value=min_usd_value, console=console)
