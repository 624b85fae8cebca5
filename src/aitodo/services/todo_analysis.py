"""Period analysis: aggregate statistics, then ask the model for prose."""

from __future__ import annotations

import logging

from aitodo.core.errors import APIError
from aitodo.models.ai import AnalysisPeriod, TodoAnalysis
from aitodo.models.task import TaskRecord
from aitodo.services.ai_errors import to_api_error
from aitodo.services.base import BaseAIService
from aitodo.services.prompts import build_analysis_prompt
from aitodo.services.statistics import aggregate

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "AI analysis failed. Please try again."
NO_TASKS_MESSAGE = "There are no tasks to analyze."


class TodoAnalysisService(BaseAIService):
    async def analyze(
        self, todos: list[TaskRecord], period: AnalysisPeriod
    ) -> TodoAnalysis:
        if not todos:
            raise APIError(400, NO_TASKS_MESSAGE)
        self._validate_api_key()

        now = self._clock()
        stats = aggregate(todos, now)
        logger.info(
            "Analyzing %s: total=%d completed=%d rate=%s%% overdue=%d on_time=%s%%",
            period,
            stats.total,
            stats.completed,
            stats.completion_rate,
            stats.overdue,
            stats.on_time_rate,
        )
        prompt = build_analysis_prompt(todos, stats, period, now)

        model = self.settings.ai_analysis_model
        try:
            return await self._build_ai_client(model).generate_object(
                prompt=prompt, schema=TodoAnalysis
            )
        except Exception as e:
            raise to_api_error(e, ANALYSIS_FAILED_MESSAGE, [model]) from e
