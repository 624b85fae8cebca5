"""AI endpoints: text-to-task generation and period analysis."""

from fastapi import APIRouter

from aitodo.core.deps import TodoAnalysisServiceDep, TodoGenerationServiceDep
from aitodo.models.ai import (
    AnalyzeTodosRequest,
    AnalyzeTodosResponse,
    ErrorResponse,
    GenerateTodoRequest,
    GenerateTodoResponse,
)

router = APIRouter(prefix="/ai", tags=["ai"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/generate-todo",
    response_model=GenerateTodoResponse,
    responses=ERROR_RESPONSES,
)
async def generate_todo(
    body: GenerateTodoRequest,
    service: TodoGenerationServiceDep,
) -> GenerateTodoResponse:
    """Turn a free-text sentence into a task draft for the user to approve."""
    return GenerateTodoResponse(data=await service.generate(body.text))


@router.post(
    "/analyze-todos",
    response_model=AnalyzeTodosResponse,
    responses=ERROR_RESPONSES,
)
async def analyze_todos(
    body: AnalyzeTodosRequest,
    service: TodoAnalysisServiceDep,
) -> AnalyzeTodosResponse:
    """Summarize the given tasks for today or this week."""
    return AnalyzeTodosResponse(data=await service.analyze(body.todos, body.period))
