"""Report row formatting and ordering."""

from .formatters import (
    extract_version_number,
    format_date,
    parse_week_label,
    week_label,
    week_start,
)
from .ordering import sort_detailed_stats

__all__ = [
    "extract_version_number",
    "format_date",
    "parse_week_label",
    "sort_detailed_stats",
    "week_label",
    "week_start",
]
