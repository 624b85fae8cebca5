"""Integration tests for POST /api/ai/analyze-todos."""

import pytest
from fastapi.testclient import TestClient

from aitodo.services.ai_errors import ModelNotFoundError, RateLimitError

pytestmark = pytest.mark.integration

URL = "/api/ai/analyze-todos"

ANALYSIS = {
    "summary": "오늘 3개 중 1개를 완료했어요.",
    "urgentTasks": ["보고서 제출"],
    "insights": ["긴급 작업 완료율이 높아요."],
    "recommendations": ["오전에 중요한 작업을 배치해 보세요."],
}

TODOS = [
    {
        "id": "9b2f6c1e-3a54-4f7a-9a0e-1d2c3b4a5f60",
        "title": "보고서 제출",
        "priority": "high",
        "category": "업무",
        "due_date": "2025-06-09T18:00:00+09:00",
        "completed": False,
        "created_date": "2025-06-01T09:00:00+09:00",
    },
    {
        "title": "요가",
        "priority": "low",
        "category": "건강",
        "due_date": "2025-06-10",
        "due_time": "19:00",
        "completed": True,
        "completed_at": "2025-06-10T08:00:00+09:00",
    },
    {"title": "책 읽기", "priority": "medium", "completed": False},
]


def test_analyze_todos_returns_model_result_verbatim(
    client_with_fake_ai: TestClient, fake_ai
) -> None:
    fake_ai.default = ANALYSIS
    response = client_with_fake_ai.post(URL, json={"todos": TODOS, "period": "today"})
    assert response.status_code == 200, response.text
    assert response.json() == {"data": ANALYSIS}
    assert [c["model"] for c in fake_ai.calls] == ["model-analysis"]


def test_analyze_todos_prompt_embeds_statistics(
    client_with_fake_ai: TestClient, fake_ai
) -> None:
    fake_ai.default = ANALYSIS
    client_with_fake_ai.post(URL, json={"todos": TODOS, "period": "week"})
    prompt = fake_ai.calls[0]["prompt"]
    assert "- Total tasks: 3" in prompt
    assert "- Overall completion rate: 33.3%" in prompt
    assert "- Overdue tasks: 1" in prompt
    assert '"보고서 제출"' in prompt and "⚠️ overdue" in prompt
    assert "next week" in prompt


def test_analyze_todos_ignores_unknown_fields(
    client_with_fake_ai: TestClient, fake_ai
) -> None:
    fake_ai.default = ANALYSIS
    todos = [{**TODOS[2], "sort_hint": 4}]
    response = client_with_fake_ai.post(URL, json={"todos": todos, "period": "today"})
    assert response.status_code == 200


def test_analyze_todos_tolerates_loose_dates_and_times(
    client_with_fake_ai: TestClient, fake_ai
) -> None:
    fake_ai.default = ANALYSIS
    todos = [
        {"title": "아침 운동", "due_date": "2025-06-10", "due_time": "9:00"},
        {"title": "언젠가", "due_date": "not a date", "due_time": "whenever"},
    ]
    response = client_with_fake_ai.post(URL, json={"todos": todos, "period": "today"})
    assert response.status_code == 200, response.text
    prompt = fake_ai.calls[0]["prompt"]
    assert '"아침 운동" - due: 2025-06-10 09:00' in prompt
    assert '"언젠가" - no due date' in prompt
    assert "- Tasks with a due date: 1" in prompt


@pytest.mark.parametrize(
    "body",
    [
        {"period": "today"},
        {"todos": "not a list", "period": "today"},
        {"todos": TODOS},
        {"todos": TODOS, "period": "month"},
        {"todos": [], "period": "week"},
    ],
)
def test_analyze_todos_rejects_bad_requests(
    client_with_fake_ai: TestClient, fake_ai, body: dict
) -> None:
    response = client_with_fake_ai.post(URL, json=body)
    assert response.status_code == 400
    assert response.json()["error"]
    assert fake_ai.calls == []


def test_analyze_todos_rate_limit_is_429(
    client_with_fake_ai: TestClient, fake_ai
) -> None:
    fake_ai.default = RateLimitError("Resource exhausted")
    response = client_with_fake_ai.post(URL, json={"todos": TODOS, "period": "today"})
    assert response.status_code == 429


def test_analyze_todos_has_no_model_fallback(
    client_with_fake_ai: TestClient, fake_ai
) -> None:
    fake_ai.default = ModelNotFoundError("Model 'model-analysis' not found")
    response = client_with_fake_ai.post(URL, json={"todos": TODOS, "period": "today"})
    assert response.status_code == 500
    assert len(fake_ai.calls) == 1


def test_health(client_with_fake_ai: TestClient) -> None:
    assert client_with_fake_ai.get("/health").json() == {"status": "ok"}
