"""Public entry points for detailed statistics."""

import asyncio
import dataclasses
import time
from datetime import tzinfo

from loguru import logger

from .aggregator import aggregate, records_summary
from .constants import DateFilterMode, LogMessage
from .dialogs import DialogPatternDetector
from .errors import DetailedStatsError, PipelineTimeoutError
from .fetcher import ComparisonFetcher
from .models import DetailedStatsPage, StatsFilters
from .reports import sort_detailed_stats
from .sources import RecordSource


class DetailedStatsPipeline:
    """Fetches, enriches, aggregates and orders detailed statistics.

    The pipeline holds no state between calls; callers may safely retry a
    failed call since every step is a read.

    Attributes:
        fetcher: Comparison record fetcher.
        detector: Dialog pattern detector.
        tz: Reporting time zone for week buckets, None for local time.
    """

    def __init__(
        self,
        *,
        source: RecordSource,
        tz: tzinfo | None = None,
        show_progress: bool = False,
    ):
        self.fetcher = ComparisonFetcher(source=source, show_progress=show_progress)
        self.detector = DialogPatternDetector(source=source)
        self.tz = tz

    async def _run(
        self,
        filters: StatsFilters,
        merge_multi_categories: bool,
        date_mode: DateFilterMode,
    ) -> DetailedStatsPage:
        start = time.perf_counter()

        total = await self.fetcher.count_records(filters=filters, date_mode=date_mode)
        logger.info(LogMessage.TOTAL_RECORDS.format(total, date_mode))
        if total == 0:
            logger.info(LogMessage.EMPTY_RESULT)
            return DetailedStatsPage.empty()

        records = await self.fetcher.fetch_all(
            filters=filters, total_count=total, date_mode=date_mode
        )

        patterns = await self.detector.detect_patterns(r.ticket_id for r in records)

        aggregate_start = time.perf_counter()
        rows = aggregate(
            records,
            patterns,
            date_mode=date_mode,
            merge_multi_categories=merge_multi_categories,
            tz=self.tz,
        )
        logger.success(
            LogMessage.AGGREGATED.format(
                len(rows), f"{(time.perf_counter() - aggregate_start) * 1000:.0f}"
            )
        )
        logger.debug(f"Summary: {records_summary(rows)}")

        sorted_rows = sort_detailed_stats(rows)
        logger.info(
            LogMessage.TOTAL_TIME.format(f"{(time.perf_counter() - start) * 1000:.0f}")
        )
        return DetailedStatsPage.single(sorted_rows)

    async def fetch_detailed_stats(
        self,
        filters: StatsFilters,
        *,
        merge_multi_categories: bool = False,
        date_mode: DateFilterMode = DateFilterMode.CREATED,
        timeout: float | None = None,
    ) -> DetailedStatsPage:
        """Compute detailed statistics for the filters.

        Args:
            filters: Caller filters, including any thread-ID whitelist.
            merge_multi_categories: Fold comma-separated categories into one bucket.
            date_mode: Date field used for the range filter and week buckets.
            timeout: Optional deadline in seconds for the whole run.

        Returns:
            DetailedStatsPage: All rows in a single page.

        Raises:
            DetailedStatsError: If counting or fetching fails, or the deadline passes.
        """
        try:
            return await asyncio.wait_for(
                self._run(filters, merge_multi_categories, date_mode), timeout
            )
        except asyncio.TimeoutError as e:
            error = PipelineTimeoutError(timeout or 0.0)
            logger.error(LogMessage.PIPELINE_FAILED.format(error))
            raise error from e
        except DetailedStatsError as e:
            logger.error(LogMessage.PIPELINE_FAILED.format(e))
            raise

    async def resolve_thread_whitelist(
        self, filters: StatsFilters
    ) -> tuple[str, ...] | None:
        """Turn the requires-editing show filters into a thread-ID whitelist.

        Returns:
            tuple[str, ...] | None: Whitelist to apply. Falls back to the caller's
            own whitelist when the show filters do not restrict anything.
        """
        whitelist: list[str] | None = None

        if filters.show_need_edit != filters.show_not_need_edit:
            whitelist = await self.fetcher.fetch_requires_editing_thread_ids(
                requires_editing=filters.show_need_edit
            )
        elif filters.hide_requires_editing:
            whitelist = await self.fetcher.fetch_requires_editing_thread_ids(
                requires_editing=True
            )

        return tuple(whitelist) if whitelist else filters.included_thread_ids

    async def fetch_detailed_stats_with_filter(
        self,
        filters: StatsFilters,
        *,
        merge_multi_categories: bool = False,
        date_mode: DateFilterMode = DateFilterMode.CREATED,
        timeout: float | None = None,
    ) -> DetailedStatsPage:
        """Like ``fetch_detailed_stats``, honoring the requires-editing show filters.

        Hiding both kinds of threads yields an empty page without any query.
        """
        if not filters.show_need_edit and not filters.show_not_need_edit:
            return DetailedStatsPage.empty()

        whitelist = await self.resolve_thread_whitelist(filters)
        return await self.fetch_detailed_stats(
            dataclasses.replace(filters, included_thread_ids=whitelist),
            merge_multi_categories=merge_multi_categories,
            date_mode=date_mode,
            timeout=timeout,
        )
