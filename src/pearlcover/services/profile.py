"""Reads and writes the chat credentials stored on a user's profile."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pearlcover.backend import Backend
from pearlcover.config import DEFAULT_AI_ENDPOINT, DEFAULT_AI_MODEL
from pearlcover.errors import ConfigurationMissingError, ProfileNotFoundError, ValidationFailure
from pearlcover.models import ChatCredentials

PROFILE_COLUMNS = ("chatgpt_api_key", "ai_endpoint_url", "ai_model_name")


@dataclass(frozen=True)
class AIConfiguration:
    """What the settings screen may see: never the key itself."""

    api_key_configured: bool
    endpoint_url: str
    model_name: str


class ProfileConfigService:
    def __init__(
        self,
        backend: Backend,
        *,
        default_endpoint: str = DEFAULT_AI_ENDPOINT,
        default_model: str = DEFAULT_AI_MODEL,
    ) -> None:
        self._backend = backend
        self._default_endpoint = default_endpoint
        self._default_model = default_model

    async def get_credentials(self, user_id: str, *, access_token: str | None = None) -> ChatCredentials:
        """Return stored credentials or raise ConfigurationMissingError."""

        profile = await self._backend.fetch_profile(user_id, PROFILE_COLUMNS, access_token=access_token)
        if not profile or not profile.get("chatgpt_api_key"):
            raise ConfigurationMissingError()
        return ChatCredentials(
            api_key=profile["chatgpt_api_key"],
            endpoint_url=profile.get("ai_endpoint_url") or None,
            model_name=profile.get("ai_model_name") or None,
        )

    async def read(self, user_id: str, *, access_token: str | None = None) -> AIConfiguration:
        profile = await self._backend.fetch_profile(user_id, PROFILE_COLUMNS, access_token=access_token)
        if profile is None:
            raise ProfileNotFoundError()
        return AIConfiguration(
            api_key_configured=bool(profile.get("chatgpt_api_key")),
            endpoint_url=profile.get("ai_endpoint_url") or self._default_endpoint,
            model_name=profile.get("ai_model_name") or self._default_model,
        )

    async def save(
        self,
        user_id: str,
        *,
        api_key: str,
        endpoint_url: str | None = None,
        model_name: str | None = None,
        access_token: str | None = None,
    ) -> None:
        if not api_key:
            raise ValidationFailure("API key is required")
        await self._backend.update_profile(
            user_id,
            {
                "chatgpt_api_key": api_key,
                "ai_endpoint_url": (endpoint_url or "").strip() or self._default_endpoint,
                "ai_model_name": (model_name or "").strip() or self._default_model,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            access_token=access_token,
        )
