from __future__ import annotations

from .formatter import format_report_table
from .publisher import publish_to_stdout

__all__ = [
    "format_report_table",
    "publish_to_stdout",
]
