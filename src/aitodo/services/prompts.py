"""Prompt builders for the two AI endpoints."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime

from aitodo.models.stats import CompletionCount, TodoStatistics
from aitodo.models.task import Priority, TaskRecord
from aitodo.services.statistics import UNCATEGORIZED

PERIOD_LABELS = {"today": "today", "week": "this week"}

PRIORITY_GLYPHS = {
    Priority.HIGH: "🔴 high",
    Priority.MEDIUM: "🟡 medium",
    Priority.LOW: "🟢 low",
}

GENERATE_TODO_TEMPLATE = """Convert the following natural-language input into a to-do item. Respond in JSON only.

Input: "{text}"

Current date/time: {today} {now_time}

=== Conversion rules ===

1. title:
   - Extract only the core action, concise (max 50 characters)
   - e.g. "내일 오후 3시까지 중요한 팀 회의 준비하기" -> "팀 회의 준비"

2. description:
   - Include extra detail if present, otherwise null
   - Keep the context of the original input

3. due_date - resolve relative to the current date ({today}):
   - "오늘" (today) -> {today}
   - "내일" (tomorrow) -> {tomorrow}
   - "모레" (day after tomorrow) -> {day_after_tomorrow}
   - "이번 주 [weekday]" (this week) -> the nearest such weekday
   - "다음 주 [weekday]" (next week) -> that weekday of next week
   - "다음주" (next week, no weekday) -> {next_monday} (next Monday)
   - An explicit date is used as given (e.g. "1월 15일", "2026-01-20")
   - No date at all -> null

4. due_time - HH:mm, 24-hour:
   - "아침" (morning) -> "09:00"
   - "점심" (lunch) -> "12:00"
   - "오후" (afternoon) -> "14:00"
   - "저녁" (evening) -> "18:00"
   - "밤" (night) -> "21:00"
   - "오전 N시" -> N:00 zero-padded (e.g. "오전 10시" -> "10:00")
   - "오후 N시" -> (N+12):00 (e.g. "오후 3시" -> "15:00")
   - "N시" -> N:00 zero-padded (e.g. "9시" -> "09:00")
   - "N:MM" is used as given
   - No time given -> null

5. priority - by these keywords only:
   - "high": "급하게", "중요한", "빨리", "꼭", "반드시"
   - "medium": "보통", "적당히", or none of the keywords
   - "low": "여유롭게", "천천히", "언젠가"

6. category - by these keywords:
   - "업무": "회의", "보고서", "프로젝트", "업무"
   - "개인": "쇼핑", "친구", "가족", "개인"
   - "건강": "운동", "병원", "건강", "요가"
   - "학습": "공부", "책", "강의", "학습"
   - Otherwise null

=== Output format ===
A JSON object with exactly these fields:
- title: string (required)
- description: string | null
- due_date: string | null (YYYY-MM-DD)
- due_time: string | null (HH:mm)
- priority: "high" | "medium" | "low" (required)
- category: string | null

=== Examples ===
Input: "내일 오후 3시까지 중요한 팀 회의 준비하기"
Output: {{
  "title": "팀 회의 준비",
  "description": "내일 오후 3시까지 중요한 팀 회의 준비하기",
  "due_date": "{tomorrow}",
  "due_time": "15:00",
  "priority": "high",
  "category": "업무"
}}

Input: "다음 주 월요일 아침 운동하기"
Output: {{
  "title": "운동하기",
  "description": null,
  "due_date": "{next_monday}",
  "due_time": "09:00",
  "priority": "medium",
  "category": "건강"
}}

Follow the rules exactly and compute every date from the current date ({today}).
Write title, description and category in the language of the input."""


def _next_monday(today: date) -> date:
    return date.fromordinal(today.toordinal() + 7 - today.weekday())


def build_generate_todo_prompt(text: str, now: datetime) -> str:
    """Instruction for turning ``text`` into a task draft, anchored at ``now``."""
    today = now.date()
    return GENERATE_TODO_TEMPLATE.format(
        text=text,
        today=today.isoformat(),
        now_time=now.strftime("%H:%M"),
        tomorrow=date.fromordinal(today.toordinal() + 1).isoformat(),
        day_after_tomorrow=date.fromordinal(today.toordinal() + 2).isoformat(),
        next_monday=_next_monday(today).isoformat(),
    )


def _count_line(label: str, c: CompletionCount) -> str:
    return f"- {label}: {c.total} total ({c.completed} completed, {c.rate}% done)"


def _task_line(index: int, task: TaskRecord, now: datetime) -> str:
    status = "✅ done" if task.completed else "⏳ in progress"
    priority = PRIORITY_GLYPHS[task.priority]
    category = task.category or UNCATEGORIZED
    if task.due_date is not None:
        # Same calendar as the statistics: aware timestamps in now's zone
        t = task.time_of_day(now.tzinfo)
        due_time = t.strftime("%H:%M") if t else ""
        due_info = f"due: {task.local_due_day(now.tzinfo).isoformat()} {due_time}".rstrip()
    else:
        due_info = "no due date"
    overdue = " ⚠️ overdue" if task.is_overdue(now) else ""
    return f'{index}. {status} {priority} [{category}] "{task.title}" - {due_info}{overdue}'


def _statistics_section(stats: TodoStatistics) -> list[str]:
    pr = stats.by_priority
    lines = [
        "=== Basic statistics ===",
        f"- Total tasks: {stats.total}",
        f"- Completed: {stats.completed}",
        f"- Not completed: {stats.incomplete}",
        f"- Overall completion rate: {stats.completion_rate}%",
        "",
        "=== Completion by priority ===",
    ]
    for priority in Priority:
        c = pr[priority]
        lines.append(
            f"- {priority.value}: {c.completed} of {c.total} completed ({c.rate}%)"
        )
    for priority in Priority:
        lines.append(f"- Pending {priority.value} tasks: {pr[priority].pending}")

    lines += [
        "",
        "=== Time management ===",
        f"- Tasks with a due date: {stats.with_due_date}",
        f"- On-time completion rate: {stats.on_time_rate}% "
        f"({stats.completed_on_time}/{stats.with_due_date})",
        f"- Overdue tasks: {stats.overdue}",
        f"- Due within the next 24 hours: {stats.due_soon}",
        "",
        "=== Focus and productivity by time slot ===",
    ]
    lines += [_count_line(slot, c) for slot, c in stats.by_time_slot.items()]
    if stats.most_productive_time_slot:
        best = stats.by_time_slot[stats.most_productive_time_slot]
        lines.append(
            f"- Most productive time slot: {stats.most_productive_time_slot} "
            f"({best.rate}% done)"
        )
    if stats.most_concentrated_time_slot:
        busiest = stats.by_time_slot[stats.most_concentrated_time_slot]
        lines.append(
            f"- Busiest time slot: {stats.most_concentrated_time_slot} "
            f"({busiest.total} tasks)"
        )

    lines += ["", "=== Productivity by weekday ==="]
    lines += [_count_line(day, c) for day, c in stats.by_weekday.items() if c.total]
    if stats.most_productive_weekday:
        best = stats.by_weekday[stats.most_productive_weekday]
        lines.append(
            f"- Most productive weekday: {stats.most_productive_weekday} ({best.rate}% done)"
        )

    lines += ["", "=== Completion by category ==="]
    lines += [_count_line(cat, c) for cat, c in stats.by_category.items()]
    return lines


ANALYSIS_RUBRIC = """=== Analysis request ===

Write a "{heading}" covering:

1. summary: one paragraph on {label}'s task status (completion rate, totals, key achievements)
   - If the completion rate is 70% or higher, use upbeat wording such as "great progress"
   - If it is below 50%, use encouraging wording such as "there is room to improve"

2. urgentTasks: titles only of urgent, unfinished tasks (at most 5)
   - Overdue tasks first
   - Then tasks due within the next 24 hours

3. insights: one sentence each, covering all of:
   a) Completion-rate analysis:
      - Evaluate the overall rate and compare completion across priorities
      - If high-priority tasks are completed well, praise the habit of handling urgent work first
      - If priorities differ a lot, suggest not neglecting low-priority work
   b) Time-management analysis:
      - Evaluate the on-time completion rate ({on_time_rate}%)
      - If there are overdue tasks, describe the pattern (e.g. "high-priority work tends to slip")
      - Mention tasks due within the next 24 hours, if any
   c) Productivity patterns:
      - Name the most productive time slot and weekday from the data
      - Describe which time slot carries the most tasks
      - Describe what the categories with high completion have in common
   d) Improvement opportunities:
      - Task types that are often postponed (by category and priority)
      - Common traits of tasks that are easy to finish

4. recommendations: concrete, actionable suggestions, one sentence each (at most 4):
   a) Time management: if on-time completion is low, suggest setting due dates 1-2 days earlier;
      if many tasks are overdue, suggest clearing overdue work at the start of the week
   b) Priority adjustment: if there are many high-priority tasks, suggest re-evaluating them
   c) Rescheduling: place important work in productive time slots; spread out overloaded slots
   d) Motivation: highlight what is going well and encourage improvements in a positive tone

=== Writing rules ===
- Write every sentence in natural, friendly Korean with a consistent tone
- Use the numbers and statistics above to be specific
- Lead with what the user does well, then suggest improvements
- Make recommendations actionable (e.g. "put important work between 09:00 and 12:00")
- {closing}

Current date: {today}"""

PERIOD_CLOSINGS = {
    "today": "Focus on how to use the rest of today well and which priorities to tackle now",
    "week": "Analyze the weekly pattern and include suggestions for planning next week",
}
PERIOD_HEADINGS = {"today": "Today's summary", "week": "This week's summary"}


def build_analysis_prompt(
    todos: Sequence[TaskRecord],
    stats: TodoStatistics,
    period: str,
    now: datetime,
) -> str:
    """Instruction embedding ``stats`` and the annotated task list for ``period``."""
    label = PERIOD_LABELS[period]
    lines = [
        f"Analyze {label}'s to-do list in depth and provide a summary and insights.",
        "",
    ]
    lines += _statistics_section(stats)
    lines += ["", "=== Task list ==="]
    lines += [_task_line(i, t, now) for i, t in enumerate(todos, start=1)]
    lines.append("")
    lines.append(
        ANALYSIS_RUBRIC.format(
            heading=PERIOD_HEADINGS[period],
            label=label,
            on_time_rate=stats.on_time_rate,
            closing=PERIOD_CLOSINGS[period],
            today=now.date().isoformat(),
        )
    )
    return "\n".join(lines)
