"""Utilities for formatting dates and versions in report rows."""

import re
from datetime import date, datetime, timedelta, tzinfo

from ..constants import (
    DAYS_IN_WEEK_AFTER_START,
    DISPLAY_DATE_FORMAT,
    WEEK_LABEL_SEPARATOR,
)
from ..timestamps import assume_utc

_VERSION_NUMBER = re.compile(r"\d+")


def format_date(value: date) -> str:
    """Format a date as DD.MM.YYYY."""
    return value.strftime(DISPLAY_DATE_FORMAT)


def week_start(moment: datetime, tz: tzinfo | None = None) -> date:
    """Monday of the ISO week containing ``moment``.

    Args:
        moment: Timestamp to bucket. Naive values are taken as UTC.
        tz: Reporting time zone; None means the local zone.

    Returns:
        date: The Monday on which the week starts at 00:00 in ``tz``.
    """
    local = assume_utc(moment).astimezone(tz)
    return local.date() - timedelta(days=local.weekday())


def week_label(monday: date) -> str:
    """Render ``"DD.MM.YYYY — DD.MM.YYYY"`` for the week starting ``monday``."""
    sunday = monday + timedelta(days=DAYS_IN_WEEK_AFTER_START)
    return f"{format_date(monday)}{WEEK_LABEL_SEPARATOR}{format_date(sunday)}"


def parse_week_label(label: str) -> date:
    """Parse the first date of a week label.

    Raises:
        ValueError: If the label does not start with a DD.MM.YYYY date.
    """
    first = label.split(WEEK_LABEL_SEPARATOR, 1)[0].strip()
    return datetime.strptime(first, DISPLAY_DATE_FORMAT).date()


def extract_version_number(version: str) -> int:
    """First integer embedded in a version string ("v12" -> 12), else 0."""
    match = _VERSION_NUMBER.search(version)
    return int(match.group()) if match else 0
