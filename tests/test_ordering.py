from __future__ import annotations

from datetime import date

import pytest

from comparison_stats.models import DetailedStatsRow
from comparison_stats.reports import (
    extract_version_number,
    parse_week_label,
    sort_detailed_stats,
    week_label,
)


def _row(category: str, version: str, dates: str | None = None) -> DetailedStatsRow:
    return DetailedStatsRow(
        category=category,
        version=version,
        dates=dates,
        sort_order=1 if dates is None else 2,
        total_records=1,
        reviewed_records=1,
        ai_errors=0,
        ai_quality=1,
        not_responded=0,
        second_request=0,
        ai_approved_count=0,
        unclassified_count=0,
    )


def _keys(rows: list[DetailedStatsRow]) -> list[tuple[str, str, str | None, int]]:
    return [(row.category, row.version, row.dates, row.sort_order) for row in rows]


def test_newer_version_sorts_first_with_its_weeks() -> None:
    week = "06.01.2025 — 12.01.2025"
    rows = [
        _row("a", "v1", week),
        _row("a", "v1"),
        _row("a", "v2", week),
        _row("a", "v2"),
    ]

    assert _keys(sort_detailed_stats(rows)) == [
        ("a", "v2", None, 1),
        ("a", "v2", week, 2),
        ("a", "v1", None, 1),
        ("a", "v1", week, 2),
    ]


def test_weeks_sort_newest_first_and_categories_ascending() -> None:
    rows = [
        _row("b", "v1"),
        _row("a", "v3", "30.12.2024 — 05.01.2025"),
        _row("a", "v3", "13.01.2025 — 19.01.2025"),
        _row("a", "v3"),
        _row("a", "v3", "06.01.2025 — 12.01.2025"),
    ]

    assert [row.dates for row in sort_detailed_stats(rows)] == [
        None,
        "13.01.2025 — 19.01.2025",
        "06.01.2025 — 12.01.2025",
        "30.12.2024 — 05.01.2025",
        None,
    ]
    assert sort_detailed_stats(rows)[-1].category == "b"


def test_versions_with_equal_numbers_stay_grouped() -> None:
    rows = [
        _row("a", "v4.1", "06.01.2025 — 12.01.2025"),
        _row("a", "v4"),
        _row("a", "v4.1"),
        _row("a", "v4", "06.01.2025 — 12.01.2025"),
        _row("a", "unknown"),
    ]

    assert [(row.version, row.sort_order) for row in sort_detailed_stats(rows)] == [
        ("v4", 1),
        ("v4", 2),
        ("v4.1", 1),
        ("v4.1", 2),
        ("unknown", 1),
    ]


def test_sort_returns_new_list() -> None:
    rows = [_row("b", "v1"), _row("a", "v1")]

    result = sort_detailed_stats(rows)

    assert result is not rows
    assert [row.category for row in rows] == ["b", "a"]


@pytest.mark.parametrize(
    ("version", "expected"),
    [("v12", 12), ("4.0", 4), ("prompt-v3.2", 3), ("unknown", 0), ("", 0)],
)
def test_extract_version_number(version: str, expected: int) -> None:
    assert extract_version_number(version) == expected


def test_week_label_round_trips_monday() -> None:
    label = week_label(date(2024, 12, 30))

    assert label == "30.12.2024 — 05.01.2025"
    assert parse_week_label(label) == date(2024, 12, 30)
