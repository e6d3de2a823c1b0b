"""Timestamp normalization shared by filtering and week bucketing."""

from datetime import datetime, timezone


def assume_utc(moment: datetime) -> datetime:
    """Attach UTC to a naive timestamp; aware timestamps are returned unchanged.

    The store keeps timestamps in UTC, so a value arriving without an offset
    (snapshot files, ``timestamp`` columns) is read as UTC everywhere.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
