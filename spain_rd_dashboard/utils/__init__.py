"""Shared utilities and helper functions."""

from spain_rd_dashboard.utils.formatting import format_change, format_number
from spain_rd_dashboard.utils.logging_setup import setup_logging

__all__ = [
    "format_change",
    "format_number",
    "setup_logging",
]
