"""CLI interface for detailed statistics."""

import asyncio
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table as RichTable

from .classification import (
    LEGACY_TO_NEW_MAP,
    NEW_TO_LEGACY_DISPLAY,
    LegacyClassification,
    NewClassification,
    score,
    score_group,
)
from .constants import (
    DEFAULT_REPORT_OUTPUT,
    EXIT_CODE_ERROR,
    SUPABASE_KEY_ENV,
    SUPABASE_URL_ENV,
    CliHelp,
    DateFilterMode,
    LogMessage,
)
from .models import DetailedStatsPage, StatsFilters
from .pipeline import DetailedStatsPipeline
from .sources import PostgrestRecordSource, RecordSource, SnapshotRecordSource
from .storage import ReportStorage

app = typer.Typer(help=CliHelp.APP)
console = Console()


def _render_page(page: DetailedStatsPage) -> None:
    table = RichTable(title=f"Detailed stats ({page.total_count} rows)")
    for header in (
        "Category",
        "Version",
        "Dates",
        "Total",
        "Reviewed",
        "AI errors",
        "AI quality",
        "Not responded",
        "Second request",
        "Approved",
        "Unclassified",
        "Avg score",
    ):
        justify = "left" if header in ("Category", "Version", "Dates") else "right"
        table.add_column(header, justify=justify)

    for row in page.data:
        table.add_row(
            row.category if row.dates is None else "",
            row.version if row.dates is None else "",
            row.dates or "",
            str(row.total_records),
            str(row.reviewed_records),
            str(row.ai_errors),
            str(row.ai_quality),
            str(row.not_responded),
            str(row.second_request),
            str(row.ai_approved_count),
            str(row.unclassified_count),
            "-" if row.average_score is None else f"{row.average_score:.1f}",
            style="bold" if row.dates is None else None,
        )

    console.print(table)


def _localize(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=tz) if tz is not None else value.astimezone()


async def _detailed_stats_async(
    source: RecordSource,
    filters: StatsFilters,
    merge_multi_categories: bool,
    date_mode: DateFilterMode,
    tz: tzinfo | None,
    timeout: float | None,
) -> DetailedStatsPage:
    """Async implementation of the detailed-stats command."""
    pipeline = DetailedStatsPipeline(source=source, tz=tz, show_progress=True)
    try:
        return await pipeline.fetch_detailed_stats_with_filter(
            filters,
            merge_multi_categories=merge_multi_categories,
            date_mode=date_mode,
            timeout=timeout,
        )
    finally:
        if isinstance(source, PostgrestRecordSource):
            await source.aclose()


@app.command("detailed-stats")
def detailed_stats(
    date_from: datetime = typer.Option(
        ..., "--from", formats=["%Y-%m-%d"], help=CliHelp.DATE_FROM
    ),
    date_to: datetime = typer.Option(
        ..., "--to", formats=["%Y-%m-%d"], help=CliHelp.DATE_TO
    ),
    versions: list[str] = typer.Option(
        [], "--prompt-version", "-v", help=CliHelp.VERSIONS
    ),
    categories: list[str] = typer.Option(
        [], "--category", "-c", help=CliHelp.CATEGORIES
    ),
    agents: list[str] = typer.Option([], "--agent", "-a", help=CliHelp.AGENTS),
    date_mode: DateFilterMode = typer.Option(
        DateFilterMode.CREATED, "--date-mode", "-d", help=CliHelp.DATE_MODE
    ),
    merge_multi_categories: bool = typer.Option(
        False, "--merge-multi-categories", help=CliHelp.MERGE_MULTI
    ),
    show_need_edit: bool = typer.Option(
        True, "--show-need-edit/--hide-need-edit", help=CliHelp.SHOW_NEED_EDIT
    ),
    show_not_need_edit: bool = typer.Option(
        True,
        "--show-not-need-edit/--hide-not-need-edit",
        help=CliHelp.SHOW_NOT_NEED_EDIT,
    ),
    snapshot_dir: Path | None = typer.Option(
        None,
        "--snapshot-dir",
        exists=True,
        file_okay=False,
        help=CliHelp.SNAPSHOT_DIR,
    ),
    supabase_url: str | None = typer.Option(
        None, "--supabase-url", envvar=SUPABASE_URL_ENV, help=CliHelp.SUPABASE_URL
    ),
    supabase_key: str | None = typer.Option(
        None, "--supabase-key", envvar=SUPABASE_KEY_ENV, help=CliHelp.SUPABASE_KEY
    ),
    timezone_name: str | None = typer.Option(
        None, "--timezone", help=CliHelp.TIMEZONE
    ),
    timeout: float | None = typer.Option(None, "--timeout", help=CliHelp.TIMEOUT),
    output: Path = typer.Option(
        DEFAULT_REPORT_OUTPUT, "--output", "-o", help=CliHelp.OUTPUT
    ),
) -> None:
    """Compute detailed statistics per category, version and week.

    Reads comparison records either from the hosted store's REST API or from a
    local JSON snapshot, prints the rows as a table and saves them as JSON.
    """
    source: RecordSource
    if snapshot_dir is not None:
        source = SnapshotRecordSource(directory=snapshot_dir)
    elif supabase_url and supabase_key:
        source = PostgrestRecordSource(base_url=supabase_url, api_key=supabase_key)
    else:
        logger.error(
            f"Either --snapshot-dir or {SUPABASE_URL_ENV} and {SUPABASE_KEY_ENV} are required."
        )
        raise typer.Exit(code=EXIT_CODE_ERROR)

    tz = ZoneInfo(timezone_name) if timezone_name else None
    filters = StatsFilters(
        date_from=_localize(date_from, tz),
        date_to=_localize(date_to, tz),
        versions=tuple(versions),
        categories=tuple(categories),
        agents=tuple(agents),
        show_need_edit=show_need_edit,
        show_not_need_edit=show_not_need_edit,
    )

    try:
        page = asyncio.run(
            _detailed_stats_async(
                source=source,
                filters=filters,
                merge_multi_categories=merge_multi_categories,
                date_mode=date_mode,
                tz=tz,
                timeout=timeout,
            )
        )
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)

    _render_page(page)
    ReportStorage().save_page(page=page, filepath=output)


@app.command()
def taxonomy() -> None:
    """Show every classification token with its score and display columns."""
    table = RichTable(title="Classification taxonomy")
    table.add_column("Token")
    table.add_column("Taxonomy")
    table.add_column("Score", justify="right")
    table.add_column("Group")
    table.add_column("Legacy column")
    table.add_column("New column")

    for legacy in LegacyClassification:
        value = score(legacy)
        table.add_row(
            legacy,
            "legacy",
            "-" if value is None else str(value),
            score_group(value),
            legacy,
            LEGACY_TO_NEW_MAP[legacy],
        )
    for new in NewClassification:
        value = score(new)
        table.add_row(
            new,
            "new",
            "-" if value is None else str(value),
            score_group(value),
            NEW_TO_LEGACY_DISPLAY[new],
            new,
        )

    console.print(table)
