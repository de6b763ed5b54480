"""Error taxonomy surfaced by the assistant flow.

Each error carries the HTTP status the API maps it to, so handlers stay
generic.
"""

from __future__ import annotations


class PearlCoverError(RuntimeError):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Failed to get AI response"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class UnauthorizedError(PearlCoverError):
    """Raised when no authenticated session accompanies the request."""

    status_code = 401
    default_message = "Unauthorized"


class RateLimitedError(PearlCoverError):
    """Raised when the caller exceeds the per-user request window."""

    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class ConfigurationMissingError(PearlCoverError):
    """Raised when the caller has no stored chat API key."""

    status_code = 400
    default_message = "AI API key not configured"


class ValidationFailure(PearlCoverError):
    status_code = 400
    default_message = "Query is required"


class ProfileNotFoundError(PearlCoverError):
    status_code = 404
    default_message = "Profile not found"


class BackendError(PearlCoverError):
    """Raised when a hosted backend request fails outside the search path."""

    status_code = 502
    default_message = "Backend request failed"

    def __init__(self, message: str | None = None, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class UpstreamError(PearlCoverError):
    """Raised when the chat completion API fails for any other reason."""

    status_code = 500
    default_message = "Failed to get AI response"


class UpstreamAuthError(UpstreamError):
    status_code = 401
    default_message = "Invalid API key. Please check your API key in settings."


class UpstreamRateLimitError(UpstreamError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


__all__ = [
    "BackendError",
    "ConfigurationMissingError",
    "PearlCoverError",
    "ProfileNotFoundError",
    "RateLimitedError",
    "UnauthorizedError",
    "UpstreamAuthError",
    "UpstreamError",
    "UpstreamRateLimitError",
    "ValidationFailure",
]
