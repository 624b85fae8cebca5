"""Unit tests for the task draft normalizer."""

from datetime import date

import pytest

from aitodo.models.task import Priority
from aitodo.services.normalizer import (
    DEFAULT_TITLE,
    normalize_draft,
    normalize_due_date,
    normalize_due_time,
    normalize_title,
)

TODAY = date(2025, 6, 10)


def test_yesterday_is_moved_to_today() -> None:
    assert normalize_due_date("2025-06-09", TODAY) == "2025-06-10"


def test_past_date_kept_when_clamping_disabled() -> None:
    assert normalize_due_date("2025-06-09", TODAY, clamp_past=False) == "2025-06-09"


@pytest.mark.parametrize("value", ["2025/06/11", "June 11", "2025-13-40", "", None, 20250611])
def test_malformed_dates_are_dropped(value) -> None:
    assert normalize_due_date(value, TODAY) is None


def test_future_date_passes_through() -> None:
    assert normalize_due_date("2025-06-11", TODAY) == "2025-06-11"


@pytest.mark.parametrize("value", ["25:00", "9:5", "09:60", "9:05", "", None, 900])
def test_invalid_times_are_dropped(value) -> None:
    assert normalize_due_time(value) is None


def test_valid_time_passes_through() -> None:
    assert normalize_due_time("09:05") == "09:05"
    assert normalize_due_time("23:59") == "23:59"


def test_title_defaults_and_truncation() -> None:
    assert normalize_title(None) == DEFAULT_TITLE
    assert normalize_title("   ") == DEFAULT_TITLE
    assert normalize_title("  회의 준비 ") == "회의 준비"
    long_title = normalize_title("가" * 150)
    assert len(long_title) == 100
    assert long_title.endswith("...")


def test_draft_fields_get_safe_fallbacks() -> None:
    draft = normalize_draft(
        {
            "title": "",
            "description": "   ",
            "due_date": "not a date",
            "due_time": "3pm",
            "priority": "urgent",
            "category": "",
        },
        TODAY,
    )
    assert draft.title == DEFAULT_TITLE
    assert draft.description is None
    assert draft.due_date is None
    assert draft.due_time is None
    assert draft.priority is Priority.MEDIUM
    assert draft.category is None


def test_draft_tolerates_missing_and_wrongly_typed_fields() -> None:
    draft = normalize_draft({"title": 42, "priority": ["high"], "category": 7}, TODAY)
    assert draft.title == DEFAULT_TITLE
    assert draft.priority is Priority.MEDIUM
    assert draft.category is None


def test_normalizing_twice_is_stable() -> None:
    raw = {
        "title": "  " + "보고서 " * 30,
        "description": " 분기 보고서 ",
        "due_date": "2025-06-01",
        "due_time": "15:00",
        "priority": "high",
        "category": " 업무 ",
    }
    once = normalize_draft(raw, TODAY)
    twice = normalize_draft(once.model_dump(), TODAY)
    assert twice == once
    assert once.due_date == "2025-06-10"
    assert once.category == "업무"
