"""Detection of second-request and not-responded tickets from dialog events."""

import time
from collections import defaultdict
from typing import Any, Iterable, Sequence

from loguru import logger
from pydantic import ValidationError

from .batching import chunked, run_in_groups
from .constants import (
    DIALOG_BATCH_SIZE,
    DIALOG_GROUP_PAUSE_SECONDS,
    MAX_CONCURRENT_BATCHES,
    PAGE_SIZE,
    DialogColumn,
    DialogDirection,
    LogMessage,
    Table,
)
from .models import DialogEvent, DialogPatterns
from .sources import RecordQuery, RecordSource


def scan_ticket(events: Sequence[DialogEvent]) -> tuple[bool, bool]:
    """Classify one ticket from its events.

    Events are ordered by timestamp (stable, so ties keep fetch order). A
    second inbound message before any outbound reply marks a second request;
    an inbound message never followed by an outbound one marks the ticket as
    not responded.

    Args:
        events: All events of a single ticket, in any order.

    Returns:
        tuple[bool, bool]: ``(second_request, not_responded)``.
    """
    last_incoming: DialogEvent | None = None
    saw_second_request = False

    for event in sorted(events, key=lambda e: e.timestamp):
        if event.direction == DialogDirection.INBOUND:
            if last_incoming is not None and not saw_second_request:
                saw_second_request = True
            last_incoming = event
        elif event.direction == DialogDirection.OUTBOUND:
            last_incoming = None

    return saw_second_request, last_incoming is not None


def analyze_events(events: Iterable[DialogEvent]) -> DialogPatterns:
    """Group events by ticket and collect the tickets showing each pattern."""
    by_ticket: dict[str, list[DialogEvent]] = defaultdict(list)
    for event in events:
        if event.ticket_id:
            by_ticket[event.ticket_id].append(event)

    patterns = DialogPatterns()
    for ticket_id, ticket_events in by_ticket.items():
        second_request, not_responded = scan_ticket(ticket_events)
        if second_request:
            patterns.second_request.add(ticket_id)
        if not_responded:
            patterns.not_responded.add(ticket_id)

    return patterns


class DialogPatternDetector:
    """Fetches dialog events for tickets and detects behavioral patterns.

    Pattern detection only enriches the statistics, so a failing sub-batch is
    logged and contributes no events instead of aborting the run. A malformed
    row is logged and skipped on its own.

    Attributes:
        source: Record source to read dialogs from.
        batch_size: Ticket IDs per request.
        pause: Seconds to wait between concurrent groups.
    """

    def __init__(
        self,
        *,
        source: RecordSource,
        batch_size: int = DIALOG_BATCH_SIZE,
        pause: float = DIALOG_GROUP_PAUSE_SECONDS,
    ):
        self.source = source
        self.batch_size = batch_size
        self.pause = pause

    @staticmethod
    def _parse_rows(index: int, rows: list[dict[str, Any]]) -> list[DialogEvent]:
        events: list[DialogEvent] = []
        for row in rows:
            try:
                events.append(DialogEvent.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    LogMessage.DIALOG_ROW_SKIPPED.format(
                        row.get(DialogColumn.TICKET_ID), index, e.error_count()
                    )
                )
        return events

    async def _fetch_sub_batch(
        self, index: int, ticket_ids: Sequence[str]
    ) -> list[DialogEvent]:
        query = RecordQuery().in_(DialogColumn.TICKET_ID, ticket_ids)
        columns = (DialogColumn.TICKET_ID, DialogColumn.DIRECTION, DialogColumn.DATE)
        events: list[DialogEvent] = []
        offset = 0

        try:
            while True:
                rows = await self.source.read(
                    Table.DIALOGS,
                    columns,
                    query,
                    offset=offset,
                    limit=PAGE_SIZE,
                    order=(DialogColumn.DATE, DialogColumn.ID),
                )
                events.extend(self._parse_rows(index, rows))
                if len(rows) < PAGE_SIZE:
                    break
                offset += PAGE_SIZE
        except Exception as e:
            logger.warning(LogMessage.DIALOG_BATCH_FAILED.format(index, e))
            return []

        return events

    async def detect_patterns(self, ticket_ids: Iterable[str | None]) -> DialogPatterns:
        """Detect second-request and not-responded tickets.

        Args:
            ticket_ids: Ticket IDs, possibly repeated or empty.

        Returns:
            DialogPatterns: Tickets showing each pattern.
        """
        unique_ids = list(dict.fromkeys(tid for tid in ticket_ids if tid))
        if not unique_ids:
            return DialogPatterns()

        start = time.perf_counter()
        batches = chunked(unique_ids, self.batch_size)
        results = await run_in_groups(
            [
                lambda index=index, batch=batch: self._fetch_sub_batch(index, batch)
                for index, batch in enumerate(batches)
            ],
            group_size=MAX_CONCURRENT_BATCHES,
            pause=self.pause,
        )

        patterns = analyze_events(event for events in results for event in events)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.success(
            LogMessage.DIALOG_PATTERNS.format(
                len(patterns.second_request),
                len(patterns.not_responded),
                f"{elapsed_ms:.0f}",
            )
        )
        return patterns
