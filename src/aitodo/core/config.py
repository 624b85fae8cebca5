from typing import Annotated

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

load_dotenv()


class Settings(BaseSettings):
    app_name: str = "AI Todo API"
    # Development mode: error bodies include `details`
    debug: bool = False
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Hosted model: gemini (default), openai or ollama
    ai_provider: str = "gemini"
    ai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ai_api_key", "google_generative_ai_api_key"),
    )
    ai_base_url: str | None = None
    # Tried in order by the generation endpoint; next one only on model-not-found
    ai_models: Annotated[list[str], NoDecode] = ["gemini-2.5-flash", "gemini-1.5-flash"]
    ai_analysis_model: str = "gemini-2.5-flash"
    ai_timeout: float = 60.0

    # Due dates the model resolves into the past are moved to today
    clamp_past_due_dates: bool = True

    # Storage/auth backend (PostgREST + GoTrue style API)
    backend_url: str | None = None
    backend_key: str | None = None

    @field_validator("ai_models", mode="before")
    @classmethod
    def split_models(cls, value: object) -> object:
        # AI_MODELS="gemini-2.5-flash,gemini-1.5-flash"
        if isinstance(value, str):
            return [m.strip() for m in value.split(",") if m.strip()]
        return value


settings = Settings()


def get_settings() -> Settings:
    """Provide application settings (overridable in tests)."""
    return settings
