"""Request/response schemas for the AI endpoints.

``TodoDraftSchema`` and ``TodoAnalysis`` double as the structured-output
contracts handed to the hosted model: their JSON schema is sent with the
prompt and the reply is validated against them.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, StrictStr

from aitodo.models.task import Priority, TaskRecord

AnalysisPeriod = Literal["today", "week"]


class GenerateTodoRequest(BaseModel):
    text: StrictStr


class TodoDraftSchema(BaseModel):
    """Shape the model must return for text-to-task conversion."""

    title: str = Field(description="Short task title")
    description: Optional[str] = Field(
        default=None, description="Task details, null when there are none"
    )
    due_date: Optional[str] = Field(
        default=None, description="Due date in YYYY-MM-DD format"
    )
    due_time: Optional[str] = Field(
        default=None, description="Due time in HH:mm format, null when no time is given"
    )
    priority: Priority = Field(
        description="Priority (high, medium, low)"
    )
    category: Optional[str] = Field(
        default=None, description="Category (업무, 개인, 학습, 건강, 기타 ...)"
    )


class TodoDraft(BaseModel):
    """Normalized draft returned to the client for approval."""

    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None


class GenerateTodoResponse(BaseModel):
    data: TodoDraft


class AnalyzeTodosRequest(BaseModel):
    todos: list[TaskRecord]
    period: AnalysisPeriod


class TodoAnalysis(BaseModel):
    """Shape the model must return for period analysis."""

    summary: str = Field(
        description="Overall summary including completion rate and totals"
    )
    urgentTasks: list[str] = Field(
        description="Titles of urgent unfinished tasks"
    )
    insights: list[str] = Field(
        description="Insights such as time-slot focus and priority distribution"
    )
    recommendations: list[str] = Field(
        description="Actionable recommendations"
    )


class AnalyzeTodosResponse(BaseModel):
    data: TodoAnalysis


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
