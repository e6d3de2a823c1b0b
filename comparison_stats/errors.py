"""Exceptions raised by the detailed statistics pipeline."""

from .constants import Stage


class DetailedStatsError(Exception):
    """Fatal pipeline failure tagged with the stage that produced it.

    Attributes:
        stage: Pipeline stage that failed.
    """

    def __init__(self, stage: Stage, message: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage


class CountQueryError(DetailedStatsError):
    """The exact-count query could not be completed."""

    def __init__(self, cause: Exception):
        super().__init__(Stage.COUNT, f"Count query failed: {cause}")


class BatchFetchError(DetailedStatsError):
    """A page of comparison records could not be read.

    Attributes:
        page: Zero-based index of the failing page.
    """

    def __init__(self, page: int, cause: Exception):
        super().__init__(Stage.FETCH, f"Batch fetch failed on page {page}: {cause}")
        self.page = page


class PipelineTimeoutError(DetailedStatsError):
    """The whole pipeline exceeded its deadline."""

    def __init__(self, timeout: float):
        super().__init__(
            Stage.TIMEOUT, f"Detailed stats did not finish within {timeout:g}s"
        )
        self.timeout = timeout
