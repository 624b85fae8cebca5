"""Todo service: owner-scoped CRUD, completion toggle and draft approval."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone

from aitodo.models.ai import TodoDraft
from aitodo.models.task import TaskCreate, TaskRecord, TaskUpdate
from aitodo.services.base import BaseService


def draft_due_date(draft: TodoDraft) -> date | datetime | None:
    """Combine the draft's separate date and time into one due value."""
    if not draft.due_date:
        return None
    day = date.fromisoformat(draft.due_date)
    if not draft.due_time:
        return day
    hours, minutes = draft.due_time.split(":")
    # Local wall-clock time of the user who approved the draft
    return datetime.combine(day, time(int(hours), int(minutes))).astimezone()


class TodoService(BaseService):
    def list_todos(self) -> list[TaskRecord]:
        return self.backend.list_todos()

    def create_todo(self, data: TaskCreate) -> TaskRecord:
        return self.backend.insert_todo(data)

    def create_from_draft(self, draft: TodoDraft) -> TaskRecord:
        """Persist an AI draft the user approved."""
        return self.create_todo(
            TaskCreate(
                title=draft.title,
                description=draft.description,
                due_date=draft_due_date(draft),
                priority=draft.priority,
                category=draft.category,
            )
        )

    def update_todo(self, todo_id: uuid.UUID, data: TaskUpdate) -> TaskRecord:
        fields = data.model_dump(mode="json", exclude_unset=True)
        if "completed" in fields:
            fields["completed_at"] = self._completed_at(fields["completed"])
        return self.backend.update_todo(todo_id, fields)

    def set_completed(self, todo_id: uuid.UUID, completed: bool) -> TaskRecord:
        """Set completion; sets/clears completed_at."""
        return self.backend.update_todo(
            todo_id,
            {"completed": completed, "completed_at": self._completed_at(completed)},
        )

    def delete_todo(self, todo_id: uuid.UUID) -> None:
        self.backend.delete_todo(todo_id)

    @staticmethod
    def _completed_at(completed: bool) -> str | None:
        return datetime.now(timezone.utc).isoformat() if completed else None
