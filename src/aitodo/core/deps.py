"""Central place for FastAPI dependencies and shared *Dep type aliases."""

from typing import Annotated

from fastapi import Depends

from aitodo.core.config import Settings, get_settings
from aitodo.services.ai_client import build_ai_client
from aitodo.services.base import AIClientFactory, Clock, local_now
from aitodo.services.todo_analysis import TodoAnalysisService
from aitodo.services.todo_generator import TodoGenerationService


def get_ai_client_factory() -> AIClientFactory:
    """Provide the factory that builds a client per model identifier."""
    return build_ai_client


def get_clock() -> Clock:
    """Provide the source of "now" for date anchoring."""
    return local_now


SettingsDep = Annotated[Settings, Depends(get_settings)]
AIClientFactoryDep = Annotated[AIClientFactory, Depends(get_ai_client_factory)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def get_todo_generation_service(
    app_settings: SettingsDep, factory: AIClientFactoryDep, clock: ClockDep
) -> TodoGenerationService:
    """Provide TodoGenerationService for this request."""
    return TodoGenerationService(app_settings, factory, clock)


def get_todo_analysis_service(
    app_settings: SettingsDep, factory: AIClientFactoryDep, clock: ClockDep
) -> TodoAnalysisService:
    """Provide TodoAnalysisService for this request."""
    return TodoAnalysisService(app_settings, factory, clock)


TodoGenerationServiceDep = Annotated[
    TodoGenerationService, Depends(get_todo_generation_service)
]
TodoAnalysisServiceDep = Annotated[
    TodoAnalysisService, Depends(get_todo_analysis_service)
]
