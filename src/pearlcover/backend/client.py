"""Hosted backend (Supabase) client built on httpx."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

import httpx

from pearlcover.errors import BackendError
from pearlcover.metrics.observability import get_logger
from pearlcover.models import AuthenticatedUser


class Backend(Protocol):
    """Narrow interface the assistant flow needs from the hosted backend."""

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        """Resolve the user behind an access token, or None when it is invalid."""

    async def rpc(
        self, function: str, params: Mapping[str, Any], *, access_token: str | None = None
    ) -> Any:
        """Call a remote procedure and return its decoded JSON payload."""

    async def fetch_profile(
        self, user_id: str, columns: Sequence[str], *, access_token: str | None = None
    ) -> dict[str, Any] | None:
        """Return selected profile columns, or None when no profile exists."""

    async def update_profile(
        self, user_id: str, values: Mapping[str, Any], *, access_token: str | None = None
    ) -> None:
        """Update the caller's profile row."""

    async def insert(self, table: str, row: Mapping[str, Any], *, access_token: str | None = None) -> None:
        """Insert a single row."""

    async def count(self, table: str, *, access_token: str | None = None) -> int:
        """Return the exact row count visible to the caller."""

    async def ping(self) -> None:
        """Raise BackendError when the backend cannot be reached."""

    async def aclose(self) -> None:
        """Release network resources."""


class SupabaseBackend:
    """Backend talking to Supabase's auth and PostgREST endpoints."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not url or not anon_key:
            raise BackendError("Missing Supabase environment variables")
        self._anon_key = anon_key
        self._client = client or httpx.AsyncClient(base_url=url.rstrip("/"), timeout=timeout)
        self._logger = get_logger("backend")

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, access_token: str | None, **extra: str) -> dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
        }
        headers.update(extra)
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            self._logger.warning("backend.request_failed", method=method, path=path, detail=str(exc))
            raise BackendError(f"Backend request failed: {exc}") from exc
        if response.status_code >= 400:
            message = _error_message(response)
            self._logger.warning(
                "backend.request_failed", method=method, path=path, status=response.status_code, detail=message
            )
            raise BackendError(message, status=response.status_code)
        return response

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        if not access_token:
            return None
        try:
            response = await self._request("GET", "/auth/v1/user", headers=self._headers(access_token))
        except BackendError as exc:
            if exc.status in (401, 403):
                return None
            raise
        payload = response.json()
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return AuthenticatedUser(id=str(user_id), access_token=access_token, email=payload.get("email"))

    async def rpc(
        self, function: str, params: Mapping[str, Any], *, access_token: str | None = None
    ) -> Any:
        response = await self._request(
            "POST",
            f"/rest/v1/rpc/{function}",
            json=dict(params),
            headers=self._headers(access_token),
        )
        if not response.content:
            return None
        return response.json()

    async def fetch_profile(
        self, user_id: str, columns: Sequence[str], *, access_token: str | None = None
    ) -> dict[str, Any] | None:
        response = await self._request(
            "GET",
            "/rest/v1/profiles",
            params={"select": ",".join(columns), "id": f"eq.{user_id}", "limit": "1"},
            headers=self._headers(access_token),
        )
        rows = response.json()
        if not isinstance(rows, list) or not rows:
            return None
        return rows[0]

    async def update_profile(
        self, user_id: str, values: Mapping[str, Any], *, access_token: str | None = None
    ) -> None:
        await self._request(
            "PATCH",
            "/rest/v1/profiles",
            params={"id": f"eq.{user_id}"},
            json=dict(values),
            headers=self._headers(access_token, Prefer="return=minimal"),
        )

    async def insert(self, table: str, row: Mapping[str, Any], *, access_token: str | None = None) -> None:
        await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=dict(row),
            headers=self._headers(access_token, Prefer="return=minimal"),
        )

    async def count(self, table: str, *, access_token: str | None = None) -> int:
        response = await self._request(
            "HEAD",
            f"/rest/v1/{table}",
            params={"select": "id"},
            headers=self._headers(access_token, Prefer="count=exact"),
        )
        return _parse_content_range(response.headers.get("content-range"))

    async def ping(self) -> None:
        await self._request(
            "GET",
            "/rest/v1/profiles",
            params={"select": "id", "limit": "1"},
            headers=self._headers(None),
        )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("message", "msg", "error_description", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"Backend returned HTTP {response.status_code}"


def _parse_content_range(value: str | None) -> int:
    # PostgREST reports "0-9/42" or "*/0"
    if not value or "/" not in value:
        return 0
    total = value.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0
