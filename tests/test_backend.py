from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from pearlcover.backend import SupabaseBackend
from pearlcover.errors import BackendError

BASE_URL = "https://project.supabase.co"


def _backend(handler) -> SupabaseBackend:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return SupabaseBackend(BASE_URL, "anon-key", client=client)


def test_requires_url_and_key():
    with pytest.raises(BackendError):
        SupabaseBackend("", "anon-key")


def test_rpc_posts_params_with_user_token():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["apikey"] = request.headers["apikey"]
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"id": "n1"}])

    rows = asyncio.run(
        _backend(handler).rpc("search_notes", {"search_query": "q", "limit_val": 10}, access_token="user-jwt")
    )

    assert rows == [{"id": "n1"}]
    assert seen == {
        "path": "/rest/v1/rpc/search_notes",
        "apikey": "anon-key",
        "auth": "Bearer user-jwt",
        "body": {"search_query": "q", "limit_val": 10},
    }


def test_error_responses_raise_backend_error():
    handler = lambda request: httpx.Response(404, json={"message": "function not found"})  # noqa: E731
    with pytest.raises(BackendError) as info:
        asyncio.run(_backend(handler).rpc("search_nope", {}))
    assert info.value.message == "function not found"
    assert info.value.status == 404


def test_get_user_resolves_identity():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/user"
        if request.headers["Authorization"] == "Bearer good":
            return httpx.Response(200, json={"id": "u-1", "email": "pearl@example.com"})
        return httpx.Response(401, json={"msg": "invalid JWT"})

    backend = _backend(handler)
    user = asyncio.run(backend.get_user("good"))
    assert user is not None
    assert (user.id, user.email, user.access_token) == ("u-1", "pearl@example.com", "good")
    assert asyncio.run(backend.get_user("bad")) is None


def test_fetch_profile_filters_by_id():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json=[{"chatgpt_api_key": "sk"}])

    profile = asyncio.run(_backend(handler).fetch_profile("u-1", ("chatgpt_api_key", "ai_model_name")))
    assert profile == {"chatgpt_api_key": "sk"}
    assert seen["id"] == "eq.u-1"
    assert seen["select"] == "chatgpt_api_key,ai_model_name"


def test_fetch_profile_missing_returns_none():
    handler = lambda request: httpx.Response(200, json=[])  # noqa: E731
    assert asyncio.run(_backend(handler).fetch_profile("u-1", ("id",))) is None


def test_count_parses_content_range():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        assert request.headers["Prefer"] == "count=exact"
        return httpx.Response(200, headers={"Content-Range": "0-9/42"})

    assert asyncio.run(_backend(handler).count("notes")) == 42


def test_count_of_empty_table():
    handler = lambda request: httpx.Response(200, headers={"Content-Range": "*/0"})  # noqa: E731
    assert asyncio.run(_backend(handler).count("notes")) == 0


def test_update_profile_patches_row():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["id"] = request.url.params["id"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    asyncio.run(_backend(handler).update_profile("u-1", {"ai_model_name": "gpt-4o"}, access_token="jwt"))
    assert seen == {"method": "PATCH", "id": "eq.u-1", "body": {"ai_model_name": "gpt-4o"}}


def test_transport_failure_raises_backend_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(BackendError):
        asyncio.run(_backend(handler).ping())
