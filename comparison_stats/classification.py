"""Classification taxonomies and the mapping between them.

Historical comparisons were tagged with the legacy five-value taxonomy,
current ones with the penalty-scored taxonomy. Everything that needs to
reason about a ``change_classification`` value goes through this module.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol, TypeAlias

from .constants import PERFECT_SCORE, ScoreGroup


class LegacyClassification(StrEnum):
    """Legacy (v3.x) classification tokens."""

    CRITICAL_ERROR = "critical_error"
    MEANINGFUL_IMPROVEMENT = "meaningful_improvement"
    STYLISTIC_PREFERENCE = "stylistic_preference"
    NO_SIGNIFICANT_CHANGE = "no_significant_change"
    CONTEXT_SHIFT = "context_shift"


class NewClassification(StrEnum):
    """Penalty-scored (v4.0) classification tokens."""

    CRITICAL_FACT_ERROR = "CRITICAL_FACT_ERROR"
    MAJOR_FUNCTIONAL_OMISSION = "MAJOR_FUNCTIONAL_OMISSION"
    MINOR_INFO_GAP = "MINOR_INFO_GAP"
    CONFUSING_VERBOSITY = "CONFUSING_VERBOSITY"
    TONAL_MISALIGNMENT = "TONAL_MISALIGNMENT"
    STRUCTURAL_FIX = "STRUCTURAL_FIX"
    STYLISTIC_EDIT = "STYLISTIC_EDIT"
    PERFECT_MATCH = "PERFECT_MATCH"
    EXCL_WORKFLOW_SHIFT = "EXCL_WORKFLOW_SHIFT"
    EXCL_DATA_DISCREPANCY = "EXCL_DATA_DISCREPANCY"
    HUMAN_INCOMPLETE = "HUMAN_INCOMPLETE"


@dataclass(frozen=True)
class UnknownClassification:
    """A non-empty token that belongs to neither taxonomy."""

    raw: str


Classification: TypeAlias = LegacyClassification | NewClassification | UnknownClassification


class ClassifiedRecord(Protocol):
    """Anything carrying a classification token and an approval flag."""

    classification: str | None
    ai_approved: bool | None


# Score = 100 + penalty; None excludes the record from scoring
CLASSIFICATION_PENALTIES: dict[NewClassification, int | None] = {
    NewClassification.CRITICAL_FACT_ERROR: -100,
    NewClassification.MAJOR_FUNCTIONAL_OMISSION: -50,
    NewClassification.MINOR_INFO_GAP: -20,
    NewClassification.CONFUSING_VERBOSITY: -15,
    NewClassification.TONAL_MISALIGNMENT: -10,
    NewClassification.STRUCTURAL_FIX: -5,
    NewClassification.STYLISTIC_EDIT: -2,
    NewClassification.PERFECT_MATCH: 0,
    NewClassification.EXCL_WORKFLOW_SHIFT: None,
    NewClassification.EXCL_DATA_DISCREPANCY: None,
    NewClassification.HUMAN_INCOMPLETE: None,
}

LEGACY_TO_NEW_MAP: dict[LegacyClassification, NewClassification] = {
    LegacyClassification.CRITICAL_ERROR: NewClassification.CRITICAL_FACT_ERROR,
    LegacyClassification.MEANINGFUL_IMPROVEMENT: NewClassification.MINOR_INFO_GAP,
    LegacyClassification.STYLISTIC_PREFERENCE: NewClassification.STYLISTIC_EDIT,
    LegacyClassification.NO_SIGNIFICANT_CHANGE: NewClassification.PERFECT_MATCH,
    LegacyClassification.CONTEXT_SHIFT: NewClassification.EXCL_WORKFLOW_SHIFT,
}

# New tokens folded into each legacy display column
NEW_TO_LEGACY_DISPLAY: dict[NewClassification, LegacyClassification] = {
    NewClassification.CRITICAL_FACT_ERROR: LegacyClassification.CRITICAL_ERROR,
    NewClassification.MAJOR_FUNCTIONAL_OMISSION: LegacyClassification.CRITICAL_ERROR,
    NewClassification.MINOR_INFO_GAP: LegacyClassification.MEANINGFUL_IMPROVEMENT,
    NewClassification.CONFUSING_VERBOSITY: LegacyClassification.MEANINGFUL_IMPROVEMENT,
    NewClassification.TONAL_MISALIGNMENT: LegacyClassification.MEANINGFUL_IMPROVEMENT,
    NewClassification.STRUCTURAL_FIX: LegacyClassification.STYLISTIC_PREFERENCE,
    NewClassification.STYLISTIC_EDIT: LegacyClassification.STYLISTIC_PREFERENCE,
    NewClassification.PERFECT_MATCH: LegacyClassification.NO_SIGNIFICANT_CHANGE,
    NewClassification.EXCL_WORKFLOW_SHIFT: LegacyClassification.CONTEXT_SHIFT,
    NewClassification.EXCL_DATA_DISCREPANCY: LegacyClassification.CONTEXT_SHIFT,
    NewClassification.HUMAN_INCOMPLETE: LegacyClassification.CONTEXT_SHIFT,
}

ERROR_CLASSIFICATIONS: frozenset[Classification] = frozenset(
    {
        LegacyClassification.CRITICAL_ERROR,
        LegacyClassification.MEANINGFUL_IMPROVEMENT,
        NewClassification.CRITICAL_FACT_ERROR,
        NewClassification.MAJOR_FUNCTIONAL_OMISSION,
        NewClassification.MINOR_INFO_GAP,
        NewClassification.CONFUSING_VERBOSITY,
        NewClassification.TONAL_MISALIGNMENT,
    }
)

QUALITY_CLASSIFICATIONS: frozenset[Classification] = frozenset(
    {
        LegacyClassification.NO_SIGNIFICANT_CHANGE,
        LegacyClassification.STYLISTIC_PREFERENCE,
        NewClassification.STRUCTURAL_FIX,
        NewClassification.STYLISTIC_EDIT,
        NewClassification.PERFECT_MATCH,
    }
)


def parse_classification(value: str | None) -> Classification | None:
    """Parse a raw ``change_classification`` value.

    Args:
        value: Raw token as stored, possibly None or empty.

    Returns:
        The matching taxonomy member, an UnknownClassification for any other
        non-empty string, or None when there is no token at all.
    """
    if not value:
        return None
    for taxonomy in (LegacyClassification, NewClassification):
        try:
            return taxonomy(value)
        except ValueError:
            continue
    return UnknownClassification(raw=value)


def is_known(value: str | None) -> bool:
    """Return True if the token belongs to either taxonomy."""
    return isinstance(
        parse_classification(value), (LegacyClassification, NewClassification)
    )


def to_new(classification: Classification | None) -> NewClassification | None:
    """Express a parsed token in the penalty-scored taxonomy."""
    if isinstance(classification, LegacyClassification):
        return LEGACY_TO_NEW_MAP[classification]
    if isinstance(classification, NewClassification):
        return classification
    return None


def to_legacy_display(
    classification: Classification | None,
) -> LegacyClassification | None:
    """Legacy display column a parsed token is tallied under."""
    if isinstance(classification, LegacyClassification):
        return classification
    if isinstance(classification, NewClassification):
        return NEW_TO_LEGACY_DISPLAY[classification]
    return None


def score(value: str | None) -> int | None:
    """Quality score 0-100 for a token, or None if excluded or unknown."""
    new = to_new(parse_classification(value))
    if new is None:
        return None
    penalty = CLASSIFICATION_PENALTIES[new]
    if penalty is None:
        return None
    return PERFECT_SCORE + penalty


def is_excluded(value: str | None) -> bool:
    """Return True if the token does not take part in scoring."""
    return score(value) is None


def score_group(value: int | None) -> ScoreGroup:
    """Band a quality score: critical 0-50, needs work 51-89, good 90-100."""
    if value is None:
        return ScoreGroup.EXCLUDED
    if value <= 50:
        return ScoreGroup.CRITICAL
    if value <= 89:
        return ScoreGroup.NEEDS_WORK
    return ScoreGroup.GOOD


def is_error(record: ClassifiedRecord) -> bool:
    """An explicit approval always means the AI reply was not an error."""
    if record.ai_approved is True:
        return False
    return parse_classification(record.classification) in ERROR_CLASSIFICATIONS


def is_quality(record: ClassifiedRecord) -> bool:
    """An explicit approval always counts as a quality AI reply."""
    if record.ai_approved is True:
        return True
    return parse_classification(record.classification) in QUALITY_CLASSIFICATIONS


def is_reviewed(record: ClassifiedRecord) -> bool:
    return record.ai_approved is True or is_known(record.classification)
