"""Client-side task board: the in-memory list a signed-in user works with.

Holds the single per-session copy of the user's tasks and implements the
behavior behind the list UI: search, filters, sorting, delayed deletion and
the guard in front of period analysis.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from aitodo.models.ai import AnalysisPeriod, TodoAnalysis
from aitodo.models.task import PRIORITY_RANK, Priority, TaskRecord
from aitodo.services.ai_api import AIApiClient
from aitodo.services.base import Clock, local_now
from aitodo.services.events import SessionEvent, SessionEvents
from aitodo.services.statistics import filter_for_period
from aitodo.services.todos import TodoService

logger = logging.getLogger(__name__)

DELETE_DELAY_SECONDS = 0.6

NOTHING_TO_ANALYZE = {
    "today": "There are no tasks due today.",
    "week": "There are no tasks due this week.",
}


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class SortOption(str, Enum):
    PRIORITY = "priority"
    DUE_DATE = "due_date"
    CREATED_DATE = "created_date"
    TITLE = "title"


class NothingToAnalyzeError(Exception):
    """Raised instead of sending an analysis request with no tasks."""


def sort_todos(todos: list[TaskRecord], option: SortOption, now: datetime) -> list[TaskRecord]:
    if option is SortOption.PRIORITY:
        return sorted(todos, key=lambda t: PRIORITY_RANK[t.priority], reverse=True)
    if option is SortOption.DUE_DATE:
        dated = [t for t in todos if t.due_date is not None]
        undated = [t for t in todos if t.due_date is None]
        return sorted(dated, key=lambda t: t.due_moment(now.tzinfo)) + undated
    if option is SortOption.CREATED_DATE:
        return sorted(
            todos,
            key=lambda t: t.created_date.timestamp() if t.created_date else float("-inf"),
            reverse=True,
        )
    return sorted(todos, key=lambda t: t.title)


class TodoBoard:
    def __init__(
        self,
        todo_service: TodoService,
        ai_api: Optional[AIApiClient] = None,
        *,
        clock: Clock = local_now,
        sleep: Callable[[float], None] = time.sleep,
        delete_delay: float = DELETE_DELAY_SECONDS,
    ) -> None:
        self._service = todo_service
        self._ai_api = ai_api
        self._clock = clock
        self._sleep = sleep
        self._delete_delay = delete_delay
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.todos: list[TaskRecord] = []
        self.pending_deletes: set[uuid.UUID] = set()
        self.closed = False

    # -- session wiring ---------------------------------------------------

    def bind(self, events: SessionEvents) -> None:
        self._unsubscribe = events.subscribe(self._on_session_event)

    def close(self) -> None:
        self.closed = True
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_session_event(self, event: SessionEvent, _payload: Any) -> None:
        if self.closed:
            return
        if event is SessionEvent.SESSION_CLEARED:
            self.todos = []
            self.pending_deletes.clear()
        else:
            self.refresh()

    # -- list -------------------------------------------------------------

    def refresh(self) -> list[TaskRecord]:
        self.todos = self._service.list_todos()
        return self.todos

    def view(
        self,
        search: str = "",
        status: StatusFilter = StatusFilter.ALL,
        priority: Optional[Priority] = None,
        sort: SortOption = SortOption.CREATED_DATE,
    ) -> list[TaskRecord]:
        now = self._clock()
        items = list(self.todos)
        if search:
            needle = search.lower()
            items = [
                t
                for t in items
                if needle in t.title.lower()
                or (t.description is not None and needle in t.description.lower())
            ]
        if status is StatusFilter.ACTIVE:
            items = [t for t in items if not t.completed]
        elif status is StatusFilter.COMPLETED:
            items = [t for t in items if t.completed]
        elif status is StatusFilter.OVERDUE:
            items = [t for t in items if t.is_overdue(now)]
        if priority is not None:
            items = [t for t in items if t.priority == priority]
        return sort_todos(items, sort, now)

    # -- two-phase delete -------------------------------------------------

    def mark_pending(self, todo_id: uuid.UUID) -> None:
        self.pending_deletes.add(todo_id)

    def commit_delete(self, todo_id: uuid.UUID) -> None:
        """Delete on the backend; on failure the pending mark is rolled back."""
        try:
            self._service.delete_todo(todo_id)
        except Exception:
            self.pending_deletes.discard(todo_id)
            raise
        self.pending_deletes.discard(todo_id)
        self.todos = [t for t in self.todos if t.id != todo_id]

    def delete(self, todo_id: uuid.UUID) -> None:
        self.mark_pending(todo_id)
        self._sleep(self._delete_delay)
        self.commit_delete(todo_id)

    # -- analysis ---------------------------------------------------------

    def tasks_for_period(self, period: AnalysisPeriod) -> list[TaskRecord]:
        return filter_for_period(self.todos, period, self._clock())

    def analyze(self, period: AnalysisPeriod) -> TodoAnalysis:
        if not self.todos:
            raise NothingToAnalyzeError("There are no tasks to analyze.")
        selected = self.tasks_for_period(period)
        if not selected:
            raise NothingToAnalyzeError(NOTHING_TO_ANALYZE[period])
        if self._ai_api is None:
            raise RuntimeError("TodoBoard has no AI API client")
        logger.info("Requesting %s analysis of %d tasks", period, len(selected))
        return self._ai_api.analyze_todos(selected, period)
