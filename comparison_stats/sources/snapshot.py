"""Record source reading table snapshots from JSON files."""

import json
from pathlib import Path
from typing import Any, Sequence

from loguru import logger

from ..constants import LogMessage
from .base import RecordQuery


class SnapshotRecordSource:
    """Serves ``<directory>/<table>.json`` files as if they were remote tables.

    Each file holds a JSON array of row objects. Files are loaded on first use
    and kept for the lifetime of the source.

    Attributes:
        directory: Directory containing one JSON file per table.
    """

    def __init__(self, *, directory: Path | str):
        self.directory = Path(directory)
        self._tables: dict[str, list[dict[str, Any]]] = {}

    def _load_table(self, table: str) -> list[dict[str, Any]]:
        if table not in self._tables:
            path = self.directory / f"{table}.json"
            with path.open("r") as f:
                rows = json.load(f)
            logger.debug(LogMessage.LOADED_SNAPSHOT.format(len(rows), path))
            self._tables[table] = rows
        return self._tables[table]

    async def count(self, table: str, query: RecordQuery) -> int:
        return sum(1 for row in self._load_table(table) if query.matches(row))

    async def read(
        self,
        table: str,
        columns: Sequence[str],
        query: RecordQuery,
        *,
        offset: int,
        limit: int,
        order: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        rows = [row for row in self._load_table(table) if query.matches(row)]
        if order:
            rows.sort(
                key=lambda row: tuple(
                    (row.get(column) is None, str(row.get(column))) for column in order
                )
            )
        return [
            {column: row.get(column) for column in columns}
            for row in rows[offset : offset + limit]
        ]
