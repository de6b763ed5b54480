"""Runtime configuration for the Pearl Cover AI service."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AI_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_AI_MODEL = "gpt-4-turbo-preview"


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="pearlcover_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"

    # Hosted backend (Supabase). Both are required for any backend access.
    supabase_url: str = ""
    supabase_anon_key: str = ""
    backend_timeout_seconds: float = 10.0

    # Chat completion defaults, used when the profile carries no override
    ai_endpoint_url: str = DEFAULT_AI_ENDPOINT
    ai_model_name: str = DEFAULT_AI_MODEL
    ai_temperature: float = 0.7
    ai_max_tokens: int = 1000
    ai_timeout_seconds: float = 60.0

    # Per-user sliding window on the chat endpoint
    chat_rate_limit_requests: int = 30
    chat_rate_limit_window_ms: int = 60_000

    # Full-text search limits
    search_limit: int = 10
    search_expense_limit: int = 5  # per expense source
    context_truncate_chars: int = 200

    # CORS
    cors_allow_origins: tuple[str, ...] = ()
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
