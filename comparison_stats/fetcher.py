"""Comparison record fetcher for the hosted store."""

import math
import time

from loguru import logger
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from .batching import run_in_groups
from .constants import (
    COMPARISON_PROJECTION,
    EXCLUDED_AGENT_EMAILS,
    MAX_CONCURRENT_BATCHES,
    PAGE_SIZE,
    THREAD_ID_PREDICATE_LIMIT,
    ComparisonColumn,
    DateFilterMode,
    LogMessage,
    Table,
    ThreadColumn,
)
from .errors import BatchFetchError, CountQueryError
from .models import ComparisonRecord, StatsFilters
from .sources import RecordQuery, RecordSource


def _whitelist_fits_predicate(thread_ids: tuple[str, ...] | None) -> bool:
    return bool(thread_ids) and len(thread_ids) <= THREAD_ID_PREDICATE_LIMIT


class ComparisonFetcher:
    """Handles counting and fetching comparison records.

    Pages are read ``MAX_CONCURRENT_BATCHES`` at a time; any failing page
    aborts the whole fetch since partial data would skew every aggregate.

    Attributes:
        source: Record source to read from.
        show_progress: Whether to render a progress bar while fetching.
    """

    def __init__(self, *, source: RecordSource, show_progress: bool = False):
        self.source = source
        self.show_progress = show_progress

    def build_query(
        self, *, filters: StatsFilters, date_mode: DateFilterMode
    ) -> RecordQuery:
        """Build the filter shared by the count and page reads.

        Args:
            filters: Caller filters.
            date_mode: Which timestamp the date range applies to.

        Returns:
            RecordQuery: Predicates for the comparison table.
        """
        date_column = date_mode.column
        query = (
            RecordQuery()
            .gte(date_column, filters.date_from)
            .lt(date_column, filters.date_to)
        )

        if date_mode is DateFilterMode.HUMAN_REPLY:
            query = query.not_null(ComparisonColumn.HUMAN_REPLY_DATE)

        if filters.versions:
            query = query.in_(ComparisonColumn.PROMPT_VERSION, filters.versions)
        if filters.categories:
            query = query.in_(ComparisonColumn.CATEGORY, filters.categories)
        if filters.agents:
            query = query.in_(ComparisonColumn.EMAIL, filters.agents)

        for email in EXCLUDED_AGENT_EMAILS:
            query = query.neq(ComparisonColumn.EMAIL, email)

        if _whitelist_fits_predicate(filters.included_thread_ids):
            query = query.in_(ComparisonColumn.THREAD_ID, filters.included_thread_ids)

        return query

    async def count_records(
        self, *, filters: StatsFilters, date_mode: DateFilterMode
    ) -> int:
        """Get the exact number of records matching the filters.

        Raises:
            CountQueryError: If the count could not be obtained.
        """
        query = self.build_query(filters=filters, date_mode=date_mode)
        try:
            return await self.source.count(Table.COMPARISON, query)
        except Exception as e:
            raise CountQueryError(e) from e

    async def fetch_all(
        self,
        *,
        filters: StatsFilters,
        total_count: int,
        date_mode: DateFilterMode,
    ) -> list[ComparisonRecord]:
        """Fetch every matching record in bounded-concurrency page groups.

        Args:
            filters: Caller filters.
            total_count: Number of matching records, from ``count_records``.
            date_mode: Which timestamp the date range applies to.

        Returns:
            list[ComparisonRecord]: Records in page order.

        Raises:
            BatchFetchError: If any page fails.
        """
        if total_count <= 0:
            return []

        start = time.perf_counter()
        query = self.build_query(filters=filters, date_mode=date_mode)
        pages = math.ceil(total_count / PAGE_SIZE)

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("[green]{task.fields[records]} records"),
            disable=not self.show_progress,
        ) as progress:
            task = progress.add_task(
                "Fetching comparison records...", total=pages, records=0
            )
            fetched = 0

            async def fetch_page(page: int) -> list[ComparisonRecord]:
                nonlocal fetched
                offset = page * PAGE_SIZE
                logger.debug(LogMessage.FETCHING_PAGE.format(page, offset))
                try:
                    rows = await self.source.read(
                        Table.COMPARISON,
                        COMPARISON_PROJECTION,
                        query,
                        offset=offset,
                        limit=PAGE_SIZE,
                        order=(ComparisonColumn.ID,),
                    )
                    records = [ComparisonRecord.model_validate(row) for row in rows]
                except Exception as e:
                    raise BatchFetchError(page, e) from e

                fetched += len(records)
                progress.update(task, advance=1, records=fetched)
                return records

            page_results = await run_in_groups(
                [lambda page=page: fetch_page(page) for page in range(pages)],
                group_size=MAX_CONCURRENT_BATCHES,
            )

        records = [record for page_records in page_results for record in page_records]

        included = filters.included_thread_ids
        if included and len(included) > THREAD_ID_PREDICATE_LIMIT:
            logger.debug(LogMessage.CLIENT_SIDE_FILTER.format(len(records), len(included)))
            included_set = set(included)
            records = [r for r in records if r.thread_id and r.thread_id in included_set]

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.success(LogMessage.FETCHED_RECORDS.format(len(records), f"{elapsed_ms:.0f}"))
        return records

    async def fetch_requires_editing_thread_ids(
        self, *, requires_editing: bool
    ) -> list[str]:
        """Collect thread IDs by their ``requires_editing`` flag.

        Reads ``PAGE_SIZE`` rows at a time until a short page. A failing page
        is logged and ends the scan with whatever was collected so far.

        Args:
            requires_editing: Flag value to select.

        Returns:
            list[str]: Matching thread IDs.
        """
        query = RecordQuery().eq(ThreadColumn.REQUIRES_EDITING, requires_editing)
        thread_ids: list[str] = []
        offset = 0

        while True:
            try:
                rows = await self.source.read(
                    Table.THREADS,
                    (ThreadColumn.THREAD_ID,),
                    query,
                    offset=offset,
                    limit=PAGE_SIZE,
                    order=(ThreadColumn.THREAD_ID,),
                )
            except Exception as e:
                logger.error(LogMessage.THREAD_PAGE_FAILED.format(offset, e))
                break

            thread_ids.extend(
                str(row[ThreadColumn.THREAD_ID])
                for row in rows
                if row.get(ThreadColumn.THREAD_ID)
            )
            if len(rows) < PAGE_SIZE:
                break
            offset += PAGE_SIZE

        logger.info(LogMessage.THREAD_WHITELIST.format(len(thread_ids), requires_editing))
        return thread_ids
