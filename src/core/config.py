"""Application configuration and .env loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized runtime configuration."""

    llm_model: str = Field(
        default="anthropic/claude-opus-4.1", validation_alias="LLM_MODEL"
    )
    llm_model_provider: str | None = Field(
        default="openai", validation_alias="LLM_MODEL_PROVIDER"
    )
    llm_base_url: str | None = Field(
        default="https://openrouter.ai/api/v1", validation_alias="LLM_BASE_URL"
    )
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_API_KEY", "OPENROUTER_API_KEY"),
        repr=False,
    )
    llm_temperature: float = Field(default=0.1, validation_alias="LLM_TEMPERATURE")
    llm_timeout: float | None = Field(default=None, validation_alias="LLM_TIMEOUT")
    llm_max_tokens: int | None = Field(
        default=4000, validation_alias="LLM_MAX_TOKENS"
    )
    llm_max_retries: int = Field(default=2, validation_alias="LLM_MAX_RETRIES")

    default_primary_framework: str = Field(
        default="china", validation_alias="DEFAULT_PRIMARY_FRAMEWORK"
    )
    default_target_language: str = Field(
        default="en", validation_alias="DEFAULT_TARGET_LANGUAGE"
    )

    persistence_enabled: bool = Field(
        default=True, validation_alias="PERSISTENCE_ENABLED"
    )
    persistence_dir: str = Field(
        default="data/lexreview", validation_alias="PERSISTENCE_DIR"
    )
    history_limit: int = Field(default=20, ge=1, validation_alias="HISTORY_LIMIT")
    statistics_window_days: int = Field(
        default=7, ge=1, validation_alias="STATISTICS_WINDOW_DAYS"
    )

    langsmith_tracing: bool = Field(default=False, validation_alias="LANGSMITH_TRACING")
    langsmith_project: str | None = Field(
        default="lexreview", validation_alias="LANGSMITH_PROJECT"
    )
    langsmith_endpoint: str | None = Field(
        default=None, validation_alias="LANGSMITH_ENDPOINT"
    )
    langsmith_api_key: str | None = Field(
        default=None, validation_alias="LANGSMITH_API_KEY", repr=False
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("default_primary_framework", "default_target_language")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().lower()

    def redacted_dump(self) -> dict:
        """Dump settings with credentials masked."""
        payload = self.model_dump()
        for key in ("llm_api_key", "langsmith_api_key"):
            if payload.get(key):
                payload[key] = "***"
        return payload


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once from .env/environment."""
    return Settings()
