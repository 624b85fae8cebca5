"""Clamp and default the fields of a model-generated task draft.

Every branch has a fallback, so whatever the model returned, the result is a
valid ``TodoDraft``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any, Optional

from aitodo.models.ai import TodoDraft
from aitodo.models.task import (
    DUE_TIME_PATTERN,
    ISO_DATE_PATTERN,
    TITLE_MAX_LENGTH,
    Priority,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "할 일"
ELLIPSIS = "..."


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def normalize_title(value: Any) -> str:
    title = _clean_text(value)
    if title is None:
        return DEFAULT_TITLE
    if len(title) > TITLE_MAX_LENGTH:
        title = title[: TITLE_MAX_LENGTH - len(ELLIPSIS)] + ELLIPSIS
    return title


def normalize_due_date(
    value: Any, today: date, clamp_past: bool = True
) -> Optional[str]:
    if not isinstance(value, str) or not value:
        return None
    value = value.strip()
    if not ISO_DATE_PATTERN.fullmatch(value):
        logger.warning("Invalid due_date format %r, dropping it", value)
        return None
    try:
        due = date.fromisoformat(value)
    except ValueError:
        logger.warning("Invalid due_date %r, dropping it", value)
        return None
    if clamp_past and due < today:
        logger.warning("Past due_date %s, moving it to %s", value, today)
        return today.isoformat()
    return value


def normalize_due_time(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value:
        return None
    if not DUE_TIME_PATTERN.fullmatch(value):
        logger.warning("Invalid due_time format %r, dropping it", value)
        return None
    return value


def normalize_priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    try:
        return Priority(value)
    except ValueError:
        return Priority.MEDIUM


def normalize_draft(
    raw: Mapping[str, Any], today: date, clamp_past: bool = True
) -> TodoDraft:
    """Build a clean draft from the model's raw field mapping."""
    return TodoDraft(
        title=normalize_title(raw.get("title")),
        description=_clean_text(raw.get("description")),
        due_date=normalize_due_date(raw.get("due_date"), today, clamp_past),
        due_time=normalize_due_time(raw.get("due_time")),
        priority=normalize_priority(raw.get("priority")),
        category=_clean_text(raw.get("category")),
    )
