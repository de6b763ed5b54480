"""Shared domain models used across the assistant flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from pearlcover.config import DEFAULT_AI_ENDPOINT, DEFAULT_AI_MODEL

Row = Mapping[str, Any]

CATEGORIES: tuple[str, ...] = ("notes", "claims", "expenses", "payments", "attachments")


@dataclass(frozen=True)
class SearchBundle:
    """Full-text search results for one query, grouped by category."""

    notes: Sequence[Row] = ()
    claims: Sequence[Row] = ()
    expenses: Sequence[Row] = ()
    payments: Sequence[Row] = ()
    attachments: Sequence[Row] = ()

    def counts(self) -> "SourceCounts":
        return SourceCounts(
            notes=len(self.notes),
            claims=len(self.claims),
            expenses=len(self.expenses),
            payments=len(self.payments),
            attachments=len(self.attachments),
        )

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in CATEGORIES)


@dataclass(frozen=True)
class SourceCounts:
    """Number of items consulted per category."""

    notes: int = 0
    claims: int = 0
    expenses: int = 0
    payments: int = 0
    attachments: int = 0

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in CATEGORIES}


@dataclass(frozen=True)
class ChatCredentials:
    """Per-user chat completion settings stored on the profile row."""

    api_key: str
    endpoint_url: str | None = None
    model_name: str | None = None

    def resolved_endpoint(self, default: str = DEFAULT_AI_ENDPOINT) -> str:
        return (self.endpoint_url or default).rstrip("/")

    def resolved_model(self, default: str = DEFAULT_AI_MODEL) -> str:
        return self.model_name or default


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity resolved from a backend access token."""

    id: str
    access_token: str
    email: str | None = None


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class AIResponse:
    """Answer produced by the chat completion API with per-category source counts."""

    content: str
    sources: SourceCounts = field(default_factory=SourceCounts)
    latency_ms: float | None = None
