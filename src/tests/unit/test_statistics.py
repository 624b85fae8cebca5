"""Unit tests for the statistics aggregator and period filter."""

from datetime import date, datetime, timedelta, timezone

import pytest

from aitodo.models.stats import format_rate
from aitodo.models.task import Priority, TaskRecord
from aitodo.services.statistics import (
    UNCATEGORIZED,
    aggregate,
    filter_for_period,
    week_bounds,
)

KST = timezone(timedelta(hours=9))
FIXED_NOW = datetime(2025, 6, 10, 10, 30, tzinfo=KST)


def _task(**kwargs) -> TaskRecord:
    kwargs.setdefault("title", "task")
    return TaskRecord.model_validate(kwargs)


def test_totals_add_up() -> None:
    todos = [
        _task(completed=True),
        _task(completed=False),
        _task(completed=True, priority="high"),
    ]
    stats = aggregate(todos, FIXED_NOW)
    assert stats.total == len(todos)
    assert stats.completed == 2
    assert stats.completed + stats.incomplete == stats.total
    assert stats.completion_rate == "66.7"


def test_empty_list_reports_zero_rates() -> None:
    stats = aggregate([], FIXED_NOW)
    assert stats.total == 0
    assert stats.completion_rate == "0"
    assert stats.on_time_rate == "0"
    assert all(c.rate == "0" for c in stats.by_priority.values())
    assert all(c.rate == "0" for c in stats.by_time_slot.values())
    assert stats.by_category == {}
    assert stats.most_productive_time_slot is None
    assert stats.most_concentrated_time_slot is None
    assert stats.most_productive_weekday is None


def test_format_rate_guards_zero_denominator() -> None:
    assert format_rate(0, 0) == "0"
    assert format_rate(1, 3) == "33.3"
    assert format_rate(2, 2) == "100.0"


def test_priority_and_category_breakdown() -> None:
    todos = [
        _task(priority="high", completed=True, category="업무"),
        _task(priority="high", completed=False, category="업무"),
        _task(priority="low", completed=False),
    ]
    stats = aggregate(todos, FIXED_NOW)
    high = stats.by_priority[Priority.HIGH]
    assert (high.total, high.completed, high.pending, high.rate) == (2, 1, 1, "50.0")
    assert stats.by_priority[Priority.MEDIUM].rate == "0"
    assert stats.by_category["업무"].total == 2
    assert stats.by_category[UNCATEGORIZED].total == 1


def test_time_slots_use_due_time_and_skip_early_hours() -> None:
    todos = [
        _task(due_date="2025-06-10", due_time="09:00", completed=True),
        _task(due_date="2025-06-10", due_time="11:59"),
        _task(due_date="2025-06-10", due_time="13:00", completed=True),
        _task(due_date="2025-06-10", due_time="21:30"),
        _task(due_date="2025-06-10", due_time="07:00"),
        _task(due_date="2025-06-10T19:15:00+09:00"),
    ]
    stats = aggregate(todos, FIXED_NOW)
    slots = stats.by_time_slot
    assert slots["Morning (09:00-12:00)"].total == 2
    assert slots["Afternoon (12:00-18:00)"].completed == 1
    assert slots["Evening (18:00-21:00)"].total == 1
    assert slots["Night (21:00-24:00)"].total == 1
    assert sum(c.total for c in slots.values()) == 5
    assert stats.most_productive_time_slot == "Afternoon (12:00-18:00)"
    assert stats.most_concentrated_time_slot == "Morning (09:00-12:00)"


def test_time_slots_read_utc_timestamps_in_callers_zone() -> None:
    todos = [
        # 15:00 and 01:00 KST as the backend returns them
        _task(due_date="2025-06-10T06:00:00+00:00", completed=True),
        _task(due_date="2025-06-09T16:00:00+00:00"),
    ]
    stats = aggregate(todos, FIXED_NOW)
    assert stats.by_time_slot["Afternoon (12:00-18:00)"].total == 1
    assert sum(c.total for c in stats.by_time_slot.values()) == 1
    assert stats.most_productive_time_slot == "Afternoon (12:00-18:00)"
    assert stats.by_weekday["Tuesday"].total == 2


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("9:00", "09:00"),
        ("9:5", "09:05"),
        ("18:30:00", "18:30"),
        ("25:00", None),
        ("noon", None),
        (900, None),
    ],
)
def test_loose_due_time_is_read_or_dropped(raw, expected) -> None:
    assert _task(due_date="2025-06-10", due_time=raw).due_time == expected


def test_unreadable_due_date_leaves_task_undated() -> None:
    task = _task(due_date="next friday")
    assert task.due_date is None
    stats = aggregate([task], FIXED_NOW)
    assert stats.total == 1
    assert stats.with_due_date == 0


def test_weekday_breakdown_and_best_day() -> None:
    todos = [
        _task(due_date="2025-06-09", completed=True),  # Monday
        _task(due_date="2025-06-10", completed=False),  # Tuesday
        _task(due_date="2025-06-10", completed=True),
    ]
    stats = aggregate(todos, FIXED_NOW)
    assert stats.by_weekday["Monday"].total == 1
    assert stats.by_weekday["Tuesday"].total == 2
    assert stats.most_productive_weekday == "Monday"
    assert stats.with_due_date == 3


def test_overdue_and_due_soon() -> None:
    todos = [
        _task(due_date="2025-06-09"),  # overdue
        _task(due_date="2025-06-09", completed=True),  # done, not overdue
        _task(due_date="2025-06-10"),  # end of today
        _task(due_date="2025-06-11T09:00:00+09:00"),  # within 24h
        _task(due_date="2025-06-12"),
    ]
    stats = aggregate(todos, FIXED_NOW)
    assert stats.overdue == 1
    assert stats.due_soon == 2


def test_on_time_uses_completion_timestamp() -> None:
    todos = [
        _task(
            due_date="2025-06-09",
            completed=True,
            completed_at="2025-06-09T20:00:00+09:00",
        ),
        _task(
            due_date="2025-06-08",
            completed=True,
            completed_at="2025-06-09T08:00:00+09:00",
        ),
        # No completion timestamp: not counted
        _task(due_date="2025-06-09", completed=True),
    ]
    stats = aggregate(todos, FIXED_NOW)
    assert stats.completed_on_time == 1
    assert stats.on_time_rate == "33.3"


def test_aggregate_is_deterministic() -> None:
    todos = [_task(due_date="2025-06-10", due_time="10:00", category="학습")]
    assert aggregate(todos, FIXED_NOW) == aggregate(todos, FIXED_NOW)


def test_week_bounds_start_on_sunday() -> None:
    expected = (date(2025, 6, 8), date(2025, 6, 14))
    assert week_bounds(date(2025, 6, 10)) == expected
    assert week_bounds(date(2025, 6, 8)) == expected
    assert week_bounds(date(2025, 6, 14)) == expected


def test_filter_for_period() -> None:
    todos = [
        _task(title="today", due_date="2025-06-10"),
        _task(title="today-late-utc", due_date="2025-06-09T16:00:00+00:00"),
        _task(title="sunday", due_date="2025-06-08"),
        _task(title="saturday", due_date="2025-06-14T23:00:00+09:00"),
        _task(title="next-sunday", due_date="2025-06-15"),
        _task(title="undated"),
    ]
    today = [t.title for t in filter_for_period(todos, "today", FIXED_NOW)]
    week = [t.title for t in filter_for_period(todos, "week", FIXED_NOW)]
    assert today == ["today", "today-late-utc"]
    assert week == ["today", "today-late-utc", "sunday", "saturday"]


def test_filter_for_period_rejects_unknown_period() -> None:
    with pytest.raises(ValueError):
        filter_for_period([], "month", FIXED_NOW)
