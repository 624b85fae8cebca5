"""Task schemas shared by the AI endpoints and the backend client."""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DUE_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
# H:M, HH:MM or HH:MM:SS as clients and time columns send it
LOOSE_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{1,2})(?::\d{2})?$")
TITLE_MAX_LENGTH = 100


def parse_due_date(value: object) -> object:
    """Date-only strings become dates, everything else ISO datetimes."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if ISO_DATE_PATTERN.fullmatch(value):
            return date.fromisoformat(value)
        return datetime.fromisoformat(value)
    return value


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class TaskRecord(BaseModel):
    """A task as stored by the backend and echoed back by the client.

    Only ``title`` is required so that partially populated rows from older
    clients still aggregate; unknown columns are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    title: str
    description: Optional[str] = None
    created_date: Optional[datetime] = None
    due_date: Optional[datetime | date] = None
    # Not a backend column; drafts and some clients send it separately
    due_time: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_due_date(cls, v: object) -> object:
        # An unreadable due date leaves the task undated
        try:
            return parse_due_date(v)
        except ValueError:
            return None

    @field_validator("due_time", mode="before")
    @classmethod
    def due_time_format(cls, v: object) -> Optional[str]:
        if not isinstance(v, str):
            return None
        match = LOOSE_TIME_PATTERN.fullmatch(v.strip())
        if not match:
            return None
        hours, minutes = int(match[1]), int(match[2])
        if hours > 23 or minutes > 59:
            return None
        return f"{hours:02d}:{minutes:02d}"

    def time_of_day(self, tz=None) -> Optional[time]:
        """Clock time the task is scheduled for, if any.

        Aware due timestamps are read in ``tz`` when it is given.
        """
        if self.due_time:
            hours, minutes = self.due_time.split(":")
            return time(int(hours), int(minutes))
        if isinstance(self.due_date, datetime):
            due = self.due_date
            if tz is not None and due.tzinfo is not None:
                due = due.astimezone(tz)
            t = due.time()
            if t != time(0, 0):
                return t
        return None

    def due_day(self) -> Optional[date]:
        if isinstance(self.due_date, datetime):
            return self.due_date.date()
        return self.due_date

    def local_due_day(self, tz=None) -> Optional[date]:
        """Calendar day the task is due on, read in ``tz`` (local time when None)."""
        if isinstance(self.due_date, datetime) and self.due_date.tzinfo is not None:
            return self.due_date.astimezone(tz).date()
        return self.due_day()

    def due_moment(self, tz=None) -> Optional[datetime]:
        """Point in time the task is due.

        Date-only tasks are due at the end of the day. Naive values are
        interpreted in ``tz`` (local time when None).
        """
        if self.due_date is None:
            return None
        if isinstance(self.due_date, datetime):
            moment = self.due_date
        elif self.due_time:
            moment = datetime.combine(self.due_date, self.time_of_day())
        else:
            moment = datetime.combine(self.due_date, time.max)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=tz) if tz else moment.astimezone()
        return moment

    def is_overdue(self, now: datetime) -> bool:
        if self.completed:
            return False
        due = self.due_moment(now.tzinfo)
        return due is not None and due < now

    def is_due_within(self, now: datetime, window: timedelta) -> bool:
        if self.completed:
            return False
        due = self.due_moment(now.tzinfo)
        return due is not None and now <= due <= now + window


class TaskCreate(BaseModel):
    """Insert payload for the backend ``todos`` table."""

    title: str
    description: Optional[str] = None
    due_date: Optional[datetime | date] = None
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_due_date(cls, v: object) -> object:
        return parse_due_date(v)

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be empty")
        return v.strip()


class TaskUpdate(BaseModel):
    """Partial update for the backend ``todos`` table."""

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime | date] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_due_date(cls, v: object) -> object:
        return parse_due_date(v)

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("title must not be empty")
        return v.strip() if v is not None else None
