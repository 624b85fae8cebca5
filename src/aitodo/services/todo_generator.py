"""Natural-language-to-task conversion."""

from __future__ import annotations

import logging
import re

from aitodo.core.errors import APIError
from aitodo.models.ai import TodoDraft, TodoDraftSchema
from aitodo.services.ai_errors import ModelNotFoundError, to_api_error
from aitodo.services.base import BaseAIService
from aitodo.services.normalizer import normalize_draft
from aitodo.services.prompts import build_generate_todo_prompt

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 2
MAX_TEXT_LENGTH = 500
MAX_NOISE_RATIO = 0.5
# Anything that is not a word character, whitespace or a Hangul syllable
NOISE_PATTERN = re.compile(r"[^\w\s가-힣]")
WHITESPACE_RUN = re.compile(r"\s+")

GENERATION_FAILED_MESSAGE = (
    "AI could not create a task. Check the input or try again shortly."
)


def validate_todo_text(text: str) -> str | None:
    """Return the user-facing problem with ``text``, or None when it is usable."""
    stripped = text.strip()
    if not stripped:
        return "Input is empty. Please describe a task."
    if len(stripped) < MIN_TEXT_LENGTH:
        return f"Input is too short. Enter at least {MIN_TEXT_LENGTH} characters."
    if len(text) > MAX_TEXT_LENGTH:
        return f"Input is too long. Enter at most {MAX_TEXT_LENGTH} characters."
    if len(NOISE_PATTERN.findall(text)) > len(text) * MAX_NOISE_RATIO:
        return "Input has too many symbols or emoji. Describe the task in words."
    return None


def preprocess_text(text: str) -> str:
    return WHITESPACE_RUN.sub(" ", text.strip())


class TodoGenerationService(BaseAIService):
    async def generate(self, text: str) -> TodoDraft:
        problem = validate_todo_text(text)
        if problem:
            raise APIError(400, problem)
        self._validate_api_key()

        processed = preprocess_text(text)
        now = self._clock()
        prompt = build_generate_todo_prompt(processed, now)
        logger.info("Generating todo from %d chars of text at %s", len(processed), now.isoformat())

        models = list(self.settings.ai_models)
        last_error: Exception | None = None
        for model in models:
            logger.info("Trying model %s", model)
            try:
                draft = await self._build_ai_client(model).generate_object(
                    prompt=prompt, schema=TodoDraftSchema
                )
            except ModelNotFoundError as e:
                logger.warning("Model %s unavailable, trying next: %s", model, e)
                last_error = e
                continue
            except Exception as e:
                raise to_api_error(e, GENERATION_FAILED_MESSAGE, models) from e
            logger.info("Generated todo with model %s", model)
            return normalize_draft(
                draft.model_dump(),
                today=now.date(),
                clamp_past=self.settings.clamp_past_due_dates,
            )

        logger.error("All models failed: %s", ", ".join(models))
        if last_error is None:
            last_error = ModelNotFoundError("No AI models configured")
        raise to_api_error(last_error, GENERATION_FAILED_MESSAGE, models)
