from __future__ import annotations

import asyncio
from typing import Any, Callable, Sequence

import pytest

from comparison_stats.sources import RecordQuery, SnapshotRecordSource


class RecordingSource(SnapshotRecordSource):
    """In-memory tables that log every call and can fail on chosen reads."""

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]],
        *,
        failing_reads: set[tuple[str, int]] | None = None,
        count_error: Exception | None = None,
        count_override: int | None = None,
        read_delay: float = 0.0,
    ) -> None:
        super().__init__(directory=".")
        self._tables = {str(name): rows for name, rows in tables.items()}
        self.failing_reads = failing_reads or set()
        self.count_error = count_error
        self.count_override = count_override
        self.read_delay = read_delay
        self.counts: list[tuple[str, RecordQuery]] = []
        self.reads: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _load_table(self, table: str) -> list[dict[str, Any]]:
        return self._tables.setdefault(str(table), [])

    async def count(self, table: str, query: RecordQuery) -> int:
        self.counts.append((str(table), query))
        if self.count_error is not None:
            raise self.count_error
        if self.count_override is not None:
            return self.count_override
        return await super().count(table, query)

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
        self.reads.append(
            {"table": str(table), "offset": offset, "limit": limit, "order": order, "query": query}
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.read_delay)
            if (str(table), offset) in self.failing_reads:
                raise RuntimeError(f"boom at {table}:{offset}")
            return await super().read(
                table, columns, query, offset=offset, limit=limit, order=order
            )
        finally:
            self.in_flight -= 1

    def reads_of(self, table: str) -> list[dict[str, Any]]:
        return [call for call in self.reads if call["table"] == str(table)]


def comparison_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": 1,
        "thread_id": "th-1",
        "ticket_id": "tk-1",
        "created_at": "2025-01-08T10:00:00+00:00",
        "human_reply_date": "2025-01-08T12:00:00+00:00",
        "request_subtype": "billing",
        "prompt_version": "v1",
        "change_classification": "PERFECT_MATCH",
        "human_reply": "Thanks, fixed.",
        "ai_approved": None,
        "email": "agent@example.com",
    }
    row.update(overrides)
    return row


def dialog_row(ticket_id: str, direction: str, date: str) -> dict[str, Any]:
    return {"ticket_id": ticket_id, "direction": direction, "date": date}


@pytest.fixture
def make_source() -> Callable[..., RecordingSource]:
    return RecordingSource
