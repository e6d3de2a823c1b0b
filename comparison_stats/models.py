"""Data models for the detailed statistics pipeline."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import ComparisonColumn, DialogColumn
from .timestamps import assume_utc


class ComparisonRecord(BaseModel):
    """One evaluated AI-vs-human reply pair, as read from the comparison table.

    Attributes:
        thread_id: Thread the reply belongs to; repeats across weeks and categories.
        ticket_id: Ticket used to look up dialog events.
        created_at: When the comparison was recorded.
        human_reply_date: When the human reply was sent, None if not yet.
        category: Request category (``request_subtype`` column).
        prompt_version: Prompt version that produced the AI reply.
        classification: Raw ``change_classification`` token.
        human_reply: Text of the human reply, None if not responded.
        ai_approved: Explicit human sign-off on the AI reply.
    """

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, coerce_numbers_to_str=True
    )

    thread_id: str | None = None
    ticket_id: str | None = None
    created_at: datetime | None = None
    human_reply_date: datetime | None = None
    category: str | None = Field(default=None, alias=ComparisonColumn.CATEGORY.value)
    prompt_version: str | None = None
    classification: str | None = Field(
        default=None, alias=ComparisonColumn.CLASSIFICATION.value
    )
    human_reply: str | None = None
    ai_approved: bool | None = None

    @field_validator("created_at", "human_reply_date")
    @classmethod
    def dates_as_utc(cls, value: datetime | None) -> datetime | None:
        return assume_utc(value) if value is not None else None


class DialogEvent(BaseModel):
    """One inbound or outbound message of a ticket."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, coerce_numbers_to_str=True
    )

    ticket_id: str
    direction: str | None = None
    timestamp: datetime = Field(alias=DialogColumn.DATE.value)

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return assume_utc(value)


@dataclass(frozen=True)
class StatsFilters:
    """Filters chosen by the caller.

    Attributes:
        date_from: Inclusive start of the range.
        date_to: Exclusive end of the range.
        versions: Prompt versions to include, empty for all.
        categories: Categories to include, empty for all.
        agents: Agent emails to include, empty for all.
        included_thread_ids: Optional whitelist of thread IDs.
        show_need_edit: Include threads that required editing.
        show_not_need_edit: Include threads that did not require editing.
        hide_requires_editing: Legacy switch restricting to threads that required editing.
    """

    date_from: datetime
    date_to: datetime
    versions: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    agents: tuple[str, ...] = ()
    included_thread_ids: tuple[str, ...] | None = None
    show_need_edit: bool = True
    show_not_need_edit: bool = True
    hide_requires_editing: bool = False


@dataclass
class DialogPatterns:
    """Tickets exhibiting each behavioral pattern."""

    second_request: set[str] = field(default_factory=set)
    not_responded: set[str] = field(default_factory=set)


def _camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


@dataclass
class DetailedStatsRow:
    """One row of the detailed statistics table.

    Version-level rows have ``sort_order`` 1 and no ``dates``; week-level rows
    have ``sort_order`` 2 and a ``"DD.MM.YYYY — DD.MM.YYYY"`` label.
    """

    category: str
    version: str
    dates: str | None
    sort_order: int
    total_records: int
    reviewed_records: int
    ai_errors: int
    ai_quality: int
    not_responded: int
    second_request: int
    ai_approved_count: int
    unclassified_count: int
    # Legacy display columns (legacy tokens plus the new tokens folded into them)
    critical_errors: int = 0
    meaningful_improvements: int = 0
    stylistic_preferences: int = 0
    no_significant_changes: int = 0
    context_shifts: int = 0
    # New display columns (new tokens plus the legacy tokens mapped onto them)
    critical_fact_errors: int = 0
    major_functional_omissions: int = 0
    minor_info_gaps: int = 0
    confusing_verbosity: int = 0
    tonal_misalignments: int = 0
    structural_fixes: int = 0
    stylistic_edits: int = 0
    perfect_matches: int = 0
    excl_workflow_shifts: int = 0
    excl_data_discrepancies: int = 0
    human_incomplete: int = 0
    average_score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert the row to a camelCase dictionary for serialization.

        Returns:
            dict[str, Any]: Row keyed the way the dashboard expects.
        """
        return {_camel_case(key): value for key, value in asdict(self).items()}


@dataclass
class DetailedStatsPage:
    """Result envelope returned by the pipeline."""

    data: list[DetailedStatsRow]
    total_count: int
    total_pages: int
    current_page: int = 0
    has_next_page: bool = False
    has_previous_page: bool = False

    @classmethod
    def empty(cls) -> "DetailedStatsPage":
        return cls(data=[], total_count=0, total_pages=0)

    @classmethod
    def single(cls, rows: list[DetailedStatsRow]) -> "DetailedStatsPage":
        """Wrap all rows into one page; further paging is left to the caller."""
        return cls(data=rows, total_count=len(rows), total_pages=1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [row.to_dict() for row in self.data],
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }
