"""Deterministic ordering of detailed statistics rows."""

from ..models import DetailedStatsRow
from .formatters import extract_version_number, parse_week_label


def _row_key(row: DetailedStatsRow) -> tuple[str, int, str, int, int]:
    # Week rows sort newest first; version rows carry no dates
    week_ordinal = parse_week_label(row.dates).toordinal() if row.dates else 0
    return (
        row.category,
        -extract_version_number(row.version),
        row.version,
        row.sort_order,
        -week_ordinal,
    )


def sort_detailed_stats(rows: list[DetailedStatsRow]) -> list[DetailedStatsRow]:
    """Order rows for hierarchical display.

    Order: category ascending, version number descending (newest first, ties
    by version string so each bucket stays together), version-level row
    before its week rows, weeks newest first.

    Args:
        rows: Rows in any order.

    Returns:
        list[DetailedStatsRow]: A new, sorted list.
    """
    return sorted(rows, key=_row_key)

