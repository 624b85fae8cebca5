"""Reduce a task list into the counts and rates used by period analysis.

Pure functions only: no I/O, and the same input (including ``now``) always
yields the same output.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from typing import Optional

from aitodo.models.stats import CompletionCount, TodoStatistics
from aitodo.models.task import Priority, TaskRecord

UNCATEGORIZED = "기타"
DUE_SOON_WINDOW = timedelta(hours=24)

# (label, first hour, end hour exclusive); hours 00-08 fall in no slot
TIME_SLOTS: list[tuple[str, int, int]] = [
    ("Morning (09:00-12:00)", 9, 12),
    ("Afternoon (12:00-18:00)", 12, 18),
    ("Evening (18:00-21:00)", 18, 21),
    ("Night (21:00-24:00)", 21, 24),
]

WEEKDAYS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def time_slot_for(t: Optional[time]) -> Optional[str]:
    if t is None:
        return None
    for label, start, end in TIME_SLOTS:
        if start <= t.hour < end:
            return label
    return None


def completed_on_time(task: TaskRecord, tz=None) -> bool:
    """Whether the task was finished no later than it was due."""
    if not task.completed or task.completed_at is None:
        return False
    due = task.due_moment(tz)
    if due is None:
        return False
    finished = task.completed_at
    if finished.tzinfo is None:
        finished = finished.replace(tzinfo=tz) if tz else finished.astimezone()
    return finished <= due


def _most_productive(buckets: dict[str, CompletionCount]) -> Optional[str]:
    ranked = sorted(
        ((label, c) for label, c in buckets.items() if c.total > 0),
        key=lambda item: item[1].completed / item[1].total,
        reverse=True,
    )
    return ranked[0][0] if ranked else None


def _most_concentrated(buckets: dict[str, CompletionCount]) -> Optional[str]:
    ranked = sorted(buckets.items(), key=lambda item: item[1].total, reverse=True)
    if not ranked or ranked[0][1].total == 0:
        return None
    return ranked[0][0]


def aggregate(todos: Sequence[TaskRecord], now: datetime) -> TodoStatistics:
    """Compute the statistics bundle for ``todos`` as seen at ``now``.

    ``now`` should be timezone-aware; naive due dates are read in its zone.
    """
    tz = now.tzinfo
    by_priority = {p: CompletionCount() for p in Priority}
    by_category: dict[str, CompletionCount] = {}
    by_time_slot = {label: CompletionCount() for label, _, _ in TIME_SLOTS}
    by_weekday = {day: CompletionCount() for day in WEEKDAYS}

    stats = TodoStatistics(total=len(todos), completed=0)
    for task in todos:
        done = task.completed
        if done:
            stats.completed += 1
        by_priority[task.priority].add(done)
        by_category.setdefault(task.category or UNCATEGORIZED, CompletionCount()).add(done)

        slot = time_slot_for(task.time_of_day(tz))
        if slot:
            by_time_slot[slot].add(done)

        day = task.local_due_day(tz)
        if day is not None:
            stats.with_due_date += 1
            by_weekday[WEEKDAYS[day.weekday()]].add(done)
            if completed_on_time(task, tz):
                stats.completed_on_time += 1
            if task.is_overdue(now):
                stats.overdue += 1
            if task.is_due_within(now, DUE_SOON_WINDOW):
                stats.due_soon += 1

    stats.by_priority = by_priority
    stats.by_category = by_category
    stats.by_time_slot = by_time_slot
    stats.by_weekday = by_weekday
    stats.most_productive_time_slot = _most_productive(by_time_slot)
    stats.most_concentrated_time_slot = _most_concentrated(by_time_slot)
    stats.most_productive_weekday = _most_productive(by_weekday)
    return stats


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday..Saturday of the week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def filter_for_period(
    todos: Iterable[TaskRecord], period: str, now: datetime
) -> list[TaskRecord]:
    """Tasks due within ``period`` ("today" or "week") in ``now``'s local calendar."""
    today = now.date()
    if period == "today":
        return [t for t in todos if t.local_due_day(now.tzinfo) == today]
    if period == "week":
        start, end = week_bounds(today)
        return [
            t
            for t in todos
            if (d := t.local_due_day(now.tzinfo)) is not None and start <= d <= end
        ]
    raise ValueError(f"Unknown period: {period!r}")
