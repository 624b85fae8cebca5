"""Pytest fixtures."""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel

from aitodo.core.config import Settings
from aitodo.core.deps import get_ai_client_factory, get_clock, get_settings
from aitodo.main import app

KST = timezone(timedelta(hours=9))
# Tuesday
FIXED_NOW = datetime(2025, 6, 10, 10, 30, tzinfo=KST)


class FakeAIClient:
    def __init__(self, provider: "FakeAIProvider", model: str) -> None:
        self._provider = provider
        self.model = model

    async def generate_object(self, *, prompt: str, schema: type[BaseModel]) -> BaseModel:
        self._provider.calls.append({"model": self.model, "prompt": prompt, "schema": schema})
        outcome = self._provider.outcomes.get(self.model, self._provider.default)
        if isinstance(outcome, Exception):
            raise outcome
        return schema.model_validate(outcome)


class FakeAIProvider:
    """Stands in for the hosted model; outcomes are keyed by model name."""

    def __init__(self) -> None:
        self.outcomes: dict[str, Any] = {}
        self.default: Any = None
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> FakeAIClient:
        return FakeAIClient(self, kwargs["model"])


@pytest.fixture
def fake_ai() -> FakeAIProvider:
    return FakeAIProvider()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ai_provider="gemini",
        ai_api_key="test-key",
        ai_models=["model-primary", "model-backup"],
        ai_analysis_model="model-analysis",
        debug=False,
    )


@pytest.fixture
def client_with_fake_ai(
    fake_ai: FakeAIProvider, test_settings: Settings
) -> Generator[TestClient, None, None]:
    """
    FastAPI test client with the AI client factory, settings and clock
    overridden, so no request leaves the process and "now" is FIXED_NOW.
    """
    app.dependency_overrides[get_ai_client_factory] = lambda: fake_ai
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
