"""Aggregate comparison records into version-level and week-level rows."""

from collections import Counter
from datetime import date, datetime, tzinfo
from typing import Any, Iterable

from .classification import (
    LegacyClassification,
    NewClassification,
    is_error,
    is_known,
    is_quality,
    is_reviewed,
    parse_classification,
    score,
    to_legacy_display,
    to_new,
)
from .constants import (
    MULTI_CATEGORY,
    MULTI_CATEGORY_DELIMITER,
    UNKNOWN_VALUE,
    VERSION_ROW_SORT_ORDER,
    WEEK_ROW_SORT_ORDER,
    DateFilterMode,
)
from .models import ComparisonRecord, DetailedStatsRow, DialogPatterns
from .reports.formatters import week_label, week_start

LEGACY_DISPLAY_FIELDS: dict[LegacyClassification, str] = {
    LegacyClassification.CRITICAL_ERROR: "critical_errors",
    LegacyClassification.MEANINGFUL_IMPROVEMENT: "meaningful_improvements",
    LegacyClassification.STYLISTIC_PREFERENCE: "stylistic_preferences",
    LegacyClassification.NO_SIGNIFICANT_CHANGE: "no_significant_changes",
    LegacyClassification.CONTEXT_SHIFT: "context_shifts",
}

NEW_DISPLAY_FIELDS: dict[NewClassification, str] = {
    NewClassification.CRITICAL_FACT_ERROR: "critical_fact_errors",
    NewClassification.MAJOR_FUNCTIONAL_OMISSION: "major_functional_omissions",
    NewClassification.MINOR_INFO_GAP: "minor_info_gaps",
    NewClassification.CONFUSING_VERBOSITY: "confusing_verbosity",
    NewClassification.TONAL_MISALIGNMENT: "tonal_misalignments",
    NewClassification.STRUCTURAL_FIX: "structural_fixes",
    NewClassification.STYLISTIC_EDIT: "stylistic_edits",
    NewClassification.PERFECT_MATCH: "perfect_matches",
    NewClassification.EXCL_WORKFLOW_SHIFT: "excl_workflow_shifts",
    NewClassification.EXCL_DATA_DISCREPANCY: "excl_data_discrepancies",
    NewClassification.HUMAN_INCOMPLETE: "human_incomplete",
}


def normalize_category(category: str | None, merge_multi_categories: bool) -> str:
    """Bucket name for a category, folding multi-category values if requested."""
    if category is None:
        return UNKNOWN_VALUE
    if merge_multi_categories and MULTI_CATEGORY_DELIMITER in category:
        return MULTI_CATEGORY
    return category


def count_classifications(records: Iterable[ComparisonRecord]) -> dict[str, int]:
    """Tally both taxonomies over the records that are not explicitly approved.

    Approved records are reported through ``ai_approved_count`` only, even
    when they also carry a classification token. Each legacy display column
    folds in the new tokens that map onto it, and each new display column
    folds in the legacy token mapped onto it, so historical and current data
    render in either scoring mode.

    Args:
        records: Records of one group.

    Returns:
        dict[str, int]: Display column name to count, for every column.
    """
    legacy_counts: Counter[LegacyClassification] = Counter()
    new_counts: Counter[NewClassification] = Counter()

    for record in records:
        if record.ai_approved is True:
            continue
        classification = parse_classification(record.classification)
        legacy = to_legacy_display(classification)
        new = to_new(classification)
        if legacy is not None:
            legacy_counts[legacy] += 1
        if new is not None:
            new_counts[new] += 1

    tallies = {name: legacy_counts[token] for token, name in LEGACY_DISPLAY_FIELDS.items()}
    tallies.update({name: new_counts[token] for token, name in NEW_DISPLAY_FIELDS.items()})
    return tallies


def average_score(records: Iterable[ComparisonRecord]) -> float | None:
    """Mean quality score of the non-approved records that can be scored."""
    scores = [
        value
        for record in records
        if record.ai_approved is not True
        and (value := score(record.classification)) is not None
    ]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 1)


def summarize(
    records: list[ComparisonRecord],
    patterns: DialogPatterns,
    *,
    category: str,
    version: str,
    dates: str | None,
    sort_order: int,
) -> DetailedStatsRow:
    """Compute one output row over a group of records."""
    reviewed = [r for r in records if is_reviewed(r)]

    return DetailedStatsRow(
        category=category,
        version=version,
        dates=dates,
        sort_order=sort_order,
        total_records=len(records),
        reviewed_records=len(reviewed),
        ai_errors=sum(1 for r in reviewed if is_error(r)),
        ai_quality=sum(1 for r in reviewed if is_quality(r)),
        not_responded=sum(1 for r in records if r.human_reply is None),
        second_request=sum(
            1
            for r in records
            if r.ticket_id is not None and r.ticket_id in patterns.second_request
        ),
        ai_approved_count=sum(1 for r in reviewed if r.ai_approved is True),
        unclassified_count=sum(
            1 for r in records if r.ai_approved is not True and not is_known(r.classification)
        ),
        average_score=average_score(records),
        **count_classifications(records),
    )


def _bucket_date(
    record: ComparisonRecord, date_mode: DateFilterMode, now: datetime
) -> datetime:
    if date_mode is DateFilterMode.HUMAN_REPLY:
        value = record.human_reply_date
    else:
        value = record.created_at
    # Missing dates are bucketed into the current week
    return value if value is not None else now


def aggregate(
    records: list[ComparisonRecord],
    patterns: DialogPatterns,
    *,
    date_mode: DateFilterMode = DateFilterMode.CREATED,
    merge_multi_categories: bool = False,
    tz: tzinfo | None = None,
    now: datetime | None = None,
) -> list[DetailedStatsRow]:
    """Build version-level and week-level rows.

    Records are grouped by (category, version); every group yields one
    version-level row followed by one row per week of the chosen date field.
    Rows are returned in grouping order; use ``sort_detailed_stats`` for
    display order.

    Args:
        records: Fetched comparison records.
        patterns: Dialog patterns for the records' tickets.
        date_mode: Date field used for week bucketing.
        merge_multi_categories: Fold comma-separated categories together.
        tz: Reporting time zone for week boundaries; None means local.
        now: Fallback timestamp for records without the chosen date.

    Returns:
        list[DetailedStatsRow]: Unsorted rows.
    """
    fallback = now if now is not None else datetime.now().astimezone(tz)
    groups: dict[tuple[str, str], list[ComparisonRecord]] = {}

    for record in records:
        key = (
            normalize_category(record.category, merge_multi_categories),
            record.prompt_version if record.prompt_version is not None else UNKNOWN_VALUE,
        )
        groups.setdefault(key, []).append(record)

    rows: list[DetailedStatsRow] = []
    for (category, version), group_records in groups.items():
        rows.append(
            summarize(
                group_records,
                patterns,
                category=category,
                version=version,
                dates=None,
                sort_order=VERSION_ROW_SORT_ORDER,
            )
        )

        weeks: dict[date, list[ComparisonRecord]] = {}
        for record in group_records:
            monday = week_start(_bucket_date(record, date_mode, fallback), tz)
            weeks.setdefault(monday, []).append(record)

        for monday, week_records in weeks.items():
            rows.append(
                summarize(
                    week_records,
                    patterns,
                    category=category,
                    version=version,
                    dates=week_label(monday),
                    sort_order=WEEK_ROW_SORT_ORDER,
                )
            )

    return rows


def records_summary(rows: list[DetailedStatsRow]) -> dict[str, Any]:
    """Totals over the version-level rows, for logging and CLI output."""
    version_rows = [row for row in rows if row.sort_order == VERSION_ROW_SORT_ORDER]
    return {
        "groups": len(version_rows),
        "weeks": len(rows) - len(version_rows),
        "records": sum(row.total_records for row in version_rows),
        "reviewed": sum(row.reviewed_records for row in version_rows),
        "ai_errors": sum(row.ai_errors for row in version_rows),
        "ai_quality": sum(row.ai_quality for row in version_rows),
    }
