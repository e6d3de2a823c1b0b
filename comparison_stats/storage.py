"""Storage for detailed statistics results."""

import json
from pathlib import Path

from loguru import logger

from .constants import DEFAULT_REPORT_OUTPUT, JSON_INDENT, LogMessage
from .models import DetailedStatsPage


class ReportStorage:
    """Handles saving detailed statistics results to disk."""

    def save_page(
        self,
        *,
        page: DetailedStatsPage,
        filepath: Path | str = DEFAULT_REPORT_OUTPUT,
    ) -> Path:
        """Save a result page to a JSON file.

        Converts the page to its camelCase dictionary form and writes it with
        proper indentation. Uses default string conversion for non-serializable types.

        Args:
            page: Result envelope to save.
            filepath: Path where the JSON file should be saved.

        Returns:
            Path: The written file.
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with filepath.open("w") as f:
            json.dump(
                page.to_dict(), f, indent=JSON_INDENT, default=str, ensure_ascii=False
            )

        logger.success(LogMessage.SAVED_REPORT.format(len(page.data), filepath))
        return filepath
