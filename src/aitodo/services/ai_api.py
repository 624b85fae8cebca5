"""Client for this service's own AI endpoints, used by front ends."""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from aitodo.models.ai import AnalysisPeriod, TodoAnalysis, TodoDraft
from aitodo.models.task import TaskRecord

DEFAULT_TIMEOUT = 90.0


class AIApiError(Exception):
    def __init__(self, status_code: int, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


class AIApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def _post(self, path: str, payload: dict) -> dict:
        resp = self._http.post(path, json=payload)
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if resp.status_code >= 400:
            raise AIApiError(
                resp.status_code,
                body.get("error") or f"Request failed with {resp.status_code}",
                body.get("details"),
            )
        if not body.get("data"):
            raise AIApiError(resp.status_code, "The AI returned no data.")
        return body["data"]

    def generate_todo(self, text: str) -> TodoDraft:
        return TodoDraft.model_validate(self._post("/api/ai/generate-todo", {"text": text}))

    def analyze_todos(
        self, todos: Sequence[TaskRecord], period: AnalysisPeriod
    ) -> TodoAnalysis:
        payload = {
            "todos": [t.model_dump(mode="json") for t in todos],
            "period": period,
        }
        return TodoAnalysis.model_validate(self._post("/api/ai/analyze-todos", payload))
