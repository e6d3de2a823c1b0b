"""Constants and enumerations for the detailed statistics pipeline."""

from enum import StrEnum
from typing import Final


# Remote store configuration
REST_API_PATH: Final[str] = "/rest/v1"
SUPABASE_URL_ENV: Final[str] = "SUPABASE_URL"
SUPABASE_KEY_ENV: Final[str] = "SUPABASE_SERVICE_ROLE_KEY"
DEFAULT_HTTP_TIMEOUT: Final[float] = 30.0
DEFAULT_REQUESTS_PER_SECOND: Final[int] = 20

# Paging and concurrency
PAGE_SIZE: Final[int] = 1000
MAX_CONCURRENT_BATCHES: Final[int] = 3
DIALOG_BATCH_SIZE: Final[int] = 300
DIALOG_GROUP_PAUSE_SECONDS: Final[float] = 0.05
THREAD_ID_PREDICATE_LIMIT: Final[int] = 100

# System and service accounts never counted in statistics
EXCLUDED_AGENT_EMAILS: Final[tuple[str, ...]] = (
    "api@levhaolam.com",
    "samantha@levhaolam.com",
)

# Grouping and display
UNKNOWN_VALUE: Final[str] = "unknown"
MULTI_CATEGORY: Final[str] = "Multi-category"
MULTI_CATEGORY_DELIMITER: Final[str] = ","
DISPLAY_DATE_FORMAT: Final[str] = "%d.%m.%Y"
WEEK_LABEL_SEPARATOR: Final[str] = " — "
DAYS_IN_WEEK_AFTER_START: Final[int] = 6
VERSION_ROW_SORT_ORDER: Final[int] = 1
WEEK_ROW_SORT_ORDER: Final[int] = 2
PERFECT_SCORE: Final[int] = 100

# JSON Serialization
JSON_INDENT: Final[int] = 2
DEFAULT_REPORT_OUTPUT: Final[str] = "detailed_stats.json"

# Numeric Constants
EXIT_CODE_ERROR: Final[int] = 1


class Table(StrEnum):
    """Remote tables read by the pipeline."""

    COMPARISON = "ai_human_comparison"
    DIALOGS = "support_dialogs"
    THREADS = "support_threads_data"


class ComparisonColumn(StrEnum):
    """Columns of the comparison table."""

    ID = "id"
    THREAD_ID = "thread_id"
    TICKET_ID = "ticket_id"
    CREATED_AT = "created_at"
    HUMAN_REPLY_DATE = "human_reply_date"
    CATEGORY = "request_subtype"
    PROMPT_VERSION = "prompt_version"
    CLASSIFICATION = "change_classification"
    HUMAN_REPLY = "human_reply"
    AI_APPROVED = "ai_approved"
    EMAIL = "email"


COMPARISON_PROJECTION: Final[tuple[str, ...]] = (
    ComparisonColumn.THREAD_ID,
    ComparisonColumn.CREATED_AT,
    ComparisonColumn.HUMAN_REPLY_DATE,
    ComparisonColumn.CATEGORY,
    ComparisonColumn.PROMPT_VERSION,
    ComparisonColumn.CLASSIFICATION,
    ComparisonColumn.HUMAN_REPLY,
    ComparisonColumn.TICKET_ID,
    ComparisonColumn.AI_APPROVED,
)


class DialogColumn(StrEnum):
    """Columns of the dialog table."""

    TICKET_ID = "ticket_id"
    DIRECTION = "direction"
    DATE = "date"
    ID = "id"


class ThreadColumn(StrEnum):
    """Columns of the thread metadata table."""

    THREAD_ID = "thread_id"
    REQUIRES_EDITING = "requires_editing"


class DialogDirection(StrEnum):
    """Direction of a dialog event relative to the support desk."""

    INBOUND = "in"
    OUTBOUND = "out"


class DateFilterMode(StrEnum):
    """Which timestamp drives the date range filter and week bucketing."""

    CREATED = "created"
    HUMAN_REPLY = "human_reply"

    @property
    def column(self) -> ComparisonColumn:
        if self is DateFilterMode.HUMAN_REPLY:
            return ComparisonColumn.HUMAN_REPLY_DATE
        return ComparisonColumn.CREATED_AT


class ScoreGroup(StrEnum):
    """Quality score bands used for display."""

    CRITICAL = "critical"
    NEEDS_WORK = "needs_work"
    GOOD = "good"
    EXCLUDED = "excluded"


class Stage(StrEnum):
    """Pipeline stages named in error messages."""

    COUNT = "count"
    FETCH = "fetch"
    TIMEOUT = "timeout"


class LogMessage(StrEnum):
    """Log message templates."""

    TOTAL_RECORDS = "Total records to fetch: {} (mode: {})"
    FETCHING_PAGE = "Fetching page {} (offset {})..."
    FETCHED_RECORDS = "Fetched {} records in {}ms"
    CLIENT_SIDE_FILTER = "Filtering {} records by {} included thread ids client-side"
    DIALOG_BATCH_FAILED = "Error fetching dialogs for sub-batch {}: {}"
    DIALOG_ROW_SKIPPED = "Skipping malformed dialog row for ticket {} in sub-batch {} ({} invalid fields)"
    DIALOG_PATTERNS = "Found {} second request and {} not responded tickets in {}ms"
    AGGREGATED = "Aggregated to {} rows in {}ms"
    TOTAL_TIME = "Total time: {}ms"
    EMPTY_RESULT = "No records match the filters, returning empty result"
    THREAD_PAGE_FAILED = "Error fetching thread ids at offset {}: {}"
    THREAD_WHITELIST = "Resolved {} thread ids with requires_editing={}"
    PIPELINE_FAILED = "Detailed stats failed: {}"
    SAVED_REPORT = "Saved {} rows to {}"
    LOADED_SNAPSHOT = "Loaded {} rows from {}"
    ERROR_OCCURRED = "Error occurred: {}"


class CliHelp(StrEnum):
    """CLI help messages."""

    APP = "Detailed statistics over AI-vs-human reply comparisons"
    DATE_FROM = "Start of the date range (inclusive), YYYY-MM-DD."
    DATE_TO = "End of the date range (exclusive), YYYY-MM-DD."
    VERSIONS = "Prompt version to include. Repeat for several; omit for all."
    CATEGORIES = "Request category to include. Repeat for several; omit for all."
    AGENTS = "Agent email to include. Repeat for several; omit for all."
    DATE_MODE = "Date field driving the range filter and week buckets."
    MERGE_MULTI = "Fold categories containing a comma into a single 'Multi-category' bucket."
    SHOW_NEED_EDIT = "Include threads that required editing."
    SHOW_NOT_NEED_EDIT = "Include threads that did not require editing."
    SNAPSHOT_DIR = "Read tables from <dir>/<table>.json instead of the REST API."
    SUPABASE_URL = "Base URL of the hosted store."
    SUPABASE_KEY = "Service role key for the hosted store."
    TIMEZONE = "IANA time zone used for week buckets. Defaults to the local zone."
    TIMEOUT = "Whole-pipeline deadline in seconds."
    OUTPUT = "Output file path for the JSON report."
