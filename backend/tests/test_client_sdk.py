"""Python client: error mapping, caching and optimistic task updates."""

from __future__ import annotations

import json

import httpx
import pytest

from app.client import ApiError, ProjectDeskClient, QueryCache

TASKS = [
    {"id": "t1", "title": "Landing page", "status": "todo"},
    {"id": "t2", "title": "Pricing page", "status": "todo"},
]


def make_client(handler) -> ProjectDeskClient:
    return ProjectDeskClient("http://desk.test", token="tok", transport=httpx.MockTransport(handler))


# ─── Errors ───────────────────────────────────

class TestApiError:
    @pytest.mark.parametrize(
        "status, body, message",
        [
            (404, {"error": "Task not found", "details": {"task_id": "t9"}}, "Task not found"),
            (403, {"detail": "Insufficient permissions"}, "Insufficient permissions"),
            (422, {"detail": [{"loc": ["body", "title"]}]}, "Unprocessable Entity"),
        ],
    )
    async def test_message_comes_from_body(self, status, body, message):
        async with make_client(lambda request: httpx.Response(status, json=body)) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.me()

        assert exc_info.value.status_code == status
        assert exc_info.value.message == message

    async def test_details_are_kept(self):
        body = {"error": "Task not found", "details": {"task_id": "t9"}}
        async with make_client(lambda request: httpx.Response(404, json=body)) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.me()
        assert exc_info.value.details == {"task_id": "t9"}

    async def test_non_json_body(self):
        async with make_client(lambda request: httpx.Response(502, text="<html>bad gateway</html>")) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.me()
        assert exc_info.value.message == "Bad Gateway"


# ─── Requests ─────────────────────────────────

class TestRequests:
    async def test_login_sets_bearer_token(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, request.headers.get("Authorization")))
            if request.url.path.endswith("/auth/login"):
                return httpx.Response(200, json={"access_token": "fresh", "token_type": "bearer", "expires_in": 60})
            return httpx.Response(200, json={"id": "u1"})

        client = ProjectDeskClient("http://desk.test/", transport=httpx.MockTransport(handler))
        async with client:
            await client.login("pm@projectdesk.test", "secret123")
            await client.me()

        assert seen == [
            ("/api/v1/auth/login", None),
            ("/api/v1/auth/me", "Bearer fresh"),
        ]

    async def test_no_content_returns_none(self):
        async with make_client(lambda request: httpx.Response(204)) as client:
            assert await client.delete_task("t1") is None

    async def test_task_lists_are_cached_until_invalidated(self):
        calls = []

        def handler(request):
            calls.append(request.method)
            if request.method == "POST":
                return httpx.Response(201, json={"id": "t3"})
            return httpx.Response(200, json=TASKS)

        async with make_client(handler) as client:
            await client.list_tasks("p1")
            await client.list_tasks("p1")
            await client.create_task(project_id="p1", title="New")
            await client.list_tasks("p1")

        assert calls == ["GET", "POST", "GET"]


# ─── Optimistic updates ───────────────────────

class TestOptimisticUpdate:
    async def test_cache_is_patched_while_request_is_in_flight(self):
        cache = QueryCache()
        cache.set(("tasks", "p1"), [dict(t) for t in TASKS])
        during = {}

        def handler(request):
            during["cached"] = cache.get(("tasks", "p1"))
            return httpx.Response(200, json={**TASKS[0], **json.loads(request.content)})

        client = ProjectDeskClient(
            "http://desk.test", token="tok", cache=cache, transport=httpx.MockTransport(handler)
        )
        async with client:
            task = await client.update_task("t1", status="in_progress")

        assert task["status"] == "in_progress"
        assert [t["status"] for t in during["cached"]] == ["in_progress", "todo"]
        assert cache.keys(("tasks",)) == []

    async def test_failure_rolls_back_and_reraises(self, monkeypatch):
        cache = QueryCache()
        cache.set(("tasks", "p1"), [dict(t) for t in TASKS])
        restored = {}
        original_restore = cache.restore

        def spy_restore(snapshot, prefix=()):
            original_restore(snapshot, prefix)
            restored.update(cache.get(("tasks", "p1"))[0])

        monkeypatch.setattr(cache, "restore", spy_restore)

        handler = lambda request: httpx.Response(403, json={"detail": "Insufficient permissions"})  # noqa: E731
        client = ProjectDeskClient(
            "http://desk.test", token="tok", cache=cache, transport=httpx.MockTransport(handler)
        )
        async with client:
            with pytest.raises(ApiError):
                await client.update_task("t1", status="done")

        assert restored["status"] == "todo"
        assert cache.keys(("tasks",)) == []


# ─── Realtime ─────────────────────────────────

def test_change_messages_invalidate_matching_queries():
    client = ProjectDeskClient("http://desk.test", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    client.cache.set(("tasks", None), [])
    client.cache.set(("tasks", "p1"), [])
    client.cache.set(("comments", "t1"), [])

    assert client.handle_change({"table": "tasks", "event": "UPDATE", "record_id": "t1"}) == 2
    assert client.handle_change({"table": "kv_entries", "event": "UPDATE", "record_id": "x"}) == 0
    assert client.cache.keys() == [("comments", "t1")]
