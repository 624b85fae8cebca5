"""Aggregated task statistics fed into the analysis prompt."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from aitodo.models.task import Priority


def format_rate(part: int, whole: int) -> str:
    """Percentage with one decimal, or "0" when there is nothing to divide by."""
    if whole <= 0:
        return "0"
    return f"{part / whole * 100:.1f}"


class CompletionCount(BaseModel):
    total: int = 0
    completed: int = 0

    @property
    def pending(self) -> int:
        return self.total - self.completed

    @property
    def rate(self) -> str:
        return format_rate(self.completed, self.total)

    def add(self, completed: bool) -> None:
        self.total += 1
        if completed:
            self.completed += 1


class TodoStatistics(BaseModel):
    total: int
    completed: int
    by_priority: dict[Priority, CompletionCount] = Field(default_factory=dict)
    by_category: dict[str, CompletionCount] = Field(default_factory=dict)
    by_time_slot: dict[str, CompletionCount] = Field(default_factory=dict)
    by_weekday: dict[str, CompletionCount] = Field(default_factory=dict)
    with_due_date: int = 0
    completed_on_time: int = 0
    overdue: int = 0
    due_soon: int = 0
    most_productive_time_slot: Optional[str] = None
    most_concentrated_time_slot: Optional[str] = None
    most_productive_weekday: Optional[str] = None

    @property
    def incomplete(self) -> int:
        return self.total - self.completed

    @property
    def completion_rate(self) -> str:
        return format_rate(self.completed, self.total)

    @property
    def on_time_rate(self) -> str:
        return format_rate(self.completed_on_time, self.with_due_date)
