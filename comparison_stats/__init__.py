"""Detailed statistics over AI-vs-human reply comparisons."""

from .errors import (
    BatchFetchError,
    CountQueryError,
    DetailedStatsError,
    PipelineTimeoutError,
)
from .fetcher import ComparisonFetcher
from .models import (
    ComparisonRecord,
    DetailedStatsPage,
    DetailedStatsRow,
    DialogPatterns,
    StatsFilters,
)
from .pipeline import DetailedStatsPipeline
from .storage import ReportStorage

__all__ = [
    "BatchFetchError",
    "ComparisonFetcher",
    "ComparisonRecord",
    "CountQueryError",
    "DetailedStatsError",
    "DetailedStatsPage",
    "DetailedStatsPipeline",
    "DetailedStatsRow",
    "DialogPatterns",
    "PipelineTimeoutError",
    "ReportStorage",
    "StatsFilters",
]
