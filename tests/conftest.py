from __future__ import annotations

from typing import Any, Mapping, Sequence

import pytest

from pearlcover.errors import BackendError
from pearlcover.models import AuthenticatedUser


class StubBackend:
    """In-memory stand-in for the hosted backend."""

    def __init__(self) -> None:
        self.users: dict[str, AuthenticatedUser] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.rpc_results: dict[str, Any] = {}
        self.failing_rpcs: set[str] = set()
        self.rpc_calls: list[tuple[str, dict[str, Any], str | None]] = []
        self.profile_updates: list[tuple[str, dict[str, Any]]] = []
        self.inserts: list[tuple[str, dict[str, Any]]] = []
        self.counts: dict[str, int] = {}
        self.fail_writes = False
        self.ping_error: str | None = None
        self.closed = False

    def add_user(self, token: str, user_id: str, **profile: Any) -> None:
        self.users[token] = AuthenticatedUser(id=user_id, access_token=token)
        if profile:
            self.profiles[user_id] = dict(profile)

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        return self.users.get(access_token)

    async def rpc(self, function: str, params: Mapping[str, Any], *, access_token: str | None = None) -> Any:
        self.rpc_calls.append((function, dict(params), access_token))
        if function in self.failing_rpcs:
            raise BackendError(f"{function} exploded", status=500)
        return self.rpc_results.get(function, [])

    async def fetch_profile(
        self, user_id: str, columns: Sequence[str], *, access_token: str | None = None
    ) -> dict[str, Any] | None:
        profile = self.profiles.get(user_id)
        if profile is None:
            return None
        return {column: profile.get(column) for column in columns}

    async def update_profile(
        self, user_id: str, values: Mapping[str, Any], *, access_token: str | None = None
    ) -> None:
        if self.fail_writes:
            raise BackendError("permission denied", status=403)
        self.profile_updates.append((user_id, dict(values)))
        self.profiles.setdefault(user_id, {}).update(values)

    async def insert(self, table: str, row: Mapping[str, Any], *, access_token: str | None = None) -> None:
        if self.fail_writes:
            raise BackendError("permission denied", status=403)
        self.inserts.append((table, dict(row)))

    async def count(self, table: str, *, access_token: str | None = None) -> int:
        if table not in self.counts:
            raise BackendError(f"relation {table} does not exist", status=404)
        return self.counts[table]

    async def ping(self) -> None:
        if self.ping_error:
            raise BackendError(self.ping_error, status=503)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def backend() -> StubBackend:
    return StubBackend()
