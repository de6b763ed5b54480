"""Chat completion backends for the assistant."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import httpx

from pearlcover.config import DEFAULT_AI_ENDPOINT, DEFAULT_AI_MODEL
from pearlcover.errors import UpstreamAuthError, UpstreamError, UpstreamRateLimitError
from pearlcover.metrics.observability import PipelineMetrics, TimedSection, get_logger
from pearlcover.models import ChatCredentials, ChatMessage


@dataclass(frozen=True)
class CompletionConfig:
    """Defaults applied when the caller's profile carries no override."""

    endpoint_url: str = DEFAULT_AI_ENDPOINT
    model: str = DEFAULT_AI_MODEL
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_seconds: float = 60.0


class CompletionBackend(Protocol):
    """Protocol describing chat completion behaviour."""

    async def complete(self, messages: Sequence[ChatMessage], credentials: ChatCredentials) -> str:
        """Return the first completion's text for the supplied messages."""


class OpenAICompatibleClient:
    """Calls any OpenAI-compatible ``/chat/completions`` endpoint over httpx.

    HTTP 401 and 429 map to dedicated errors; everything else becomes an
    UpstreamError carrying the provider's message. Nothing is retried.
    """

    def __init__(self, config: CompletionConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._config = config or CompletionConfig()
        self._client = client or httpx.AsyncClient(timeout=self._config.timeout_seconds)
        self._logger = get_logger("completion")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def complete(self, messages: Sequence[ChatMessage], credentials: ChatCredentials) -> str:
        if not credentials.api_key:
            raise UpstreamAuthError("API key is required")
        endpoint = credentials.resolved_endpoint(self._config.endpoint_url)
        payload = {
            "model": credentials.resolved_model(self._config.model),
            "messages": [message.as_dict() for message in messages],
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }
        with TimedSection(PipelineMetrics.observe_completion):
            try:
                response = await self._client.post(
                    f"{endpoint}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {credentials.api_key}"},
                )
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                PipelineMetrics.record_completion_failure("transport")
                self._logger.error("completion.failed", kind="transport", endpoint=endpoint, detail=str(exc))
                raise UpstreamError(f"API error: {exc}") from exc
        if response.status_code == 401:
            PipelineMetrics.record_completion_failure("auth")
            self._logger.warning("completion.failed", kind="auth", endpoint=endpoint)
            raise UpstreamAuthError()
        if response.status_code == 429:
            PipelineMetrics.record_completion_failure("rate_limit")
            self._logger.warning("completion.failed", kind="rate_limit", endpoint=endpoint)
            raise UpstreamRateLimitError()
        if response.status_code >= 400:
            detail = _provider_message(response)
            PipelineMetrics.record_completion_failure("http")
            self._logger.error("completion.failed", kind="http", status=response.status_code, detail=detail)
            raise UpstreamError(f"API error: {detail}")
        try:
            body = response.json()
        except ValueError as exc:
            PipelineMetrics.record_completion_failure("decode")
            raise UpstreamError(f"API error: invalid JSON response ({exc})") from exc
        return _first_choice_content(body)

    async def test_connection(self, credentials: ChatCredentials) -> bool:
        try:
            await self.complete([ChatMessage(role="user", content="Hello")], credentials)
        except UpstreamError:
            return False
        return True


def _first_choice_content(body: Any) -> str:
    if not isinstance(body, dict):
        return ""
    choices = body.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return content or ""


def _provider_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if payload.get("message"):
            return str(payload["message"])
    return f"HTTP {response.status_code}"
