"""Shared service logic."""

import logging
from collections.abc import Callable
from datetime import datetime

from aitodo.core.config import Settings
from aitodo.core.errors import APIError
from aitodo.db.client import BackendClient
from aitodo.services.ai_client import KEYLESS_PROVIDERS, AIClient

logger = logging.getLogger(__name__)

AIClientFactory = Callable[..., AIClient]
Clock = Callable[[], datetime]

CONFIG_ERROR_MESSAGE = (
    "AI service is not configured. Set AI_API_KEY (or GOOGLE_GENERATIVE_AI_API_KEY)."
)


def local_now() -> datetime:
    """Current time as an aware datetime in the server's local zone."""
    return datetime.now().astimezone()


class BaseAIService:
    """Base service with settings, AI client factory and clock injection."""

    def __init__(
        self,
        settings: Settings,
        ai_client_factory: AIClientFactory,
        clock: Clock = local_now,
    ) -> None:
        self.settings = settings
        self._ai_client_factory = ai_client_factory
        self._clock = clock

    def _validate_api_key(self) -> None:
        provider = (self.settings.ai_provider or "").lower()
        if not self.settings.ai_api_key and provider not in KEYLESS_PROVIDERS:
            logger.error(
                "No API key configured for AI provider %r; set AI_API_KEY", provider
            )
            raise APIError(500, CONFIG_ERROR_MESSAGE)

    def _build_ai_client(self, model: str) -> AIClient:
        return self._ai_client_factory(
            provider=self.settings.ai_provider,
            api_key=self.settings.ai_api_key,
            model=model,
            base_url=self.settings.ai_base_url,
            timeout=self.settings.ai_timeout,
        )


class BaseService:
    """Base service with backend client injection."""

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
