"""Record sources for the hosted store."""

from .base import Operator, Predicate, RecordQuery, RecordSource
from .postgrest import PostgrestRecordSource
from .snapshot import SnapshotRecordSource

__all__ = [
    "Operator",
    "PostgrestRecordSource",
    "Predicate",
    "RecordQuery",
    "RecordSource",
    "SnapshotRecordSource",
]
