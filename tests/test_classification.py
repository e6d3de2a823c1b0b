from __future__ import annotations

from types import SimpleNamespace

import pytest

from comparison_stats.classification import (
    LegacyClassification,
    NewClassification,
    UnknownClassification,
    is_error,
    is_excluded,
    is_known,
    is_quality,
    is_reviewed,
    parse_classification,
    score,
    score_group,
    to_legacy_display,
    to_new,
)
from comparison_stats.constants import ScoreGroup


def _record(classification: str | None, ai_approved: bool | None = None) -> SimpleNamespace:
    return SimpleNamespace(classification=classification, ai_approved=ai_approved)


def test_parse_classification_recognizes_both_taxonomies() -> None:
    assert parse_classification("critical_error") is LegacyClassification.CRITICAL_ERROR
    assert parse_classification("STYLISTIC_EDIT") is NewClassification.STYLISTIC_EDIT
    assert parse_classification("HUMAN_INCOMPLETE") is NewClassification.HUMAN_INCOMPLETE
    assert parse_classification("something_else") == UnknownClassification(raw="something_else")
    assert parse_classification("") is None
    assert parse_classification(None) is None


def test_parse_classification_is_case_sensitive() -> None:
    assert isinstance(parse_classification("CRITICAL_ERROR"), UnknownClassification)
    assert isinstance(parse_classification("perfect_match"), UnknownClassification)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("critical_error", 0),
        ("meaningful_improvement", 80),
        ("stylistic_preference", 98),
        ("no_significant_change", 100),
        ("context_shift", None),
        ("MAJOR_FUNCTIONAL_OMISSION", 50),
        ("CONFUSING_VERBOSITY", 85),
        ("TONAL_MISALIGNMENT", 90),
        ("STRUCTURAL_FIX", 95),
        ("EXCL_DATA_DISCREPANCY", None),
        ("HUMAN_INCOMPLETE", None),
        ("bogus", None),
        (None, None),
    ],
)
def test_score_applies_penalty_through_legacy_map(token: str | None, expected: int | None) -> None:
    assert score(token) == expected


def test_is_excluded_marks_unscored_tokens() -> None:
    assert is_excluded("EXCL_WORKFLOW_SHIFT")
    assert is_excluded("context_shift")
    assert not is_excluded("PERFECT_MATCH")


def test_score_group_bands() -> None:
    assert score_group(0) is ScoreGroup.CRITICAL
    assert score_group(50) is ScoreGroup.CRITICAL
    assert score_group(51) is ScoreGroup.NEEDS_WORK
    assert score_group(89) is ScoreGroup.NEEDS_WORK
    assert score_group(90) is ScoreGroup.GOOD
    assert score_group(100) is ScoreGroup.GOOD
    assert score_group(None) is ScoreGroup.EXCLUDED


def test_display_mapping_covers_every_token() -> None:
    for token in LegacyClassification:
        assert to_legacy_display(token) is token
        assert to_new(token) is not None
    for token in NewClassification:
        assert to_new(token) is token
        assert to_legacy_display(token) is not None

    assert to_legacy_display(NewClassification.MAJOR_FUNCTIONAL_OMISSION) is (
        LegacyClassification.CRITICAL_ERROR
    )
    assert to_legacy_display(NewClassification.HUMAN_INCOMPLETE) is (
        LegacyClassification.CONTEXT_SHIFT
    )
    assert to_new(LegacyClassification.MEANINGFUL_IMPROVEMENT) is NewClassification.MINOR_INFO_GAP
    assert to_new(UnknownClassification(raw="x")) is None
    assert to_legacy_display(None) is None


def test_error_and_quality_predicates_follow_token() -> None:
    assert is_error(_record("critical_error"))
    assert is_error(_record("TONAL_MISALIGNMENT"))
    assert not is_error(_record("PERFECT_MATCH"))
    assert is_quality(_record("stylistic_preference"))
    assert is_quality(_record("STRUCTURAL_FIX"))
    assert not is_quality(_record("context_shift"))
    assert not is_error(_record("EXCL_WORKFLOW_SHIFT"))
    assert not is_quality(_record("EXCL_WORKFLOW_SHIFT"))


@pytest.mark.parametrize(
    "token", [None, "", "bogus", "critical_error", "CRITICAL_FACT_ERROR", "PERFECT_MATCH"]
)
def test_approval_takes_priority_over_classification(token: str | None) -> None:
    record = _record(token, ai_approved=True)

    assert not is_error(record)
    assert is_quality(record)
    assert is_reviewed(record)


def test_is_reviewed_requires_known_token_or_approval() -> None:
    assert is_reviewed(_record("context_shift"))
    assert is_reviewed(_record("bogus", ai_approved=True))
    assert not is_reviewed(_record("bogus"))
    assert not is_reviewed(_record(None, ai_approved=False))
    assert is_known("EXCL_DATA_DISCREPANCY")
    assert not is_known(None)
