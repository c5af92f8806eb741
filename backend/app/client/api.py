"""
ProjectDeskClient — thin async wrapper over the REST API.

    async with ProjectDeskClient("http://localhost:8000", token=token) as client:
        tasks = await client.list_tasks(project_id=pid)
        await client.update_task(tasks[0]["id"], status="in_progress")

Responses are returned as decoded JSON.  Any non-2xx response raises
ApiError carrying the server's message.
"""

from __future__ import annotations

from typing import Any

import httpx

from app.client.cache import QueryCache
from app.core.logging import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 30

# Realtime table -> cache prefix it invalidates
TABLE_CACHE_PREFIXES = {
    "tasks": ("tasks",),
    "task_comments": ("comments",),
    "task_attachments": ("attachments",),
    "notifications": ("notifications",),
    "projects": ("projects",),
}


class ApiError(Exception):
    """A request the API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, *, details: dict | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        super().__init__(f"{status_code}: {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        details = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("detail")
            details = body.get("details")
        if not isinstance(message, str):
            message = response.reason_phrase or "Request failed"
        return cls(response.status_code, message, details=details)


def _patch_task(task: dict[str, Any], task_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    if str(task.get("id")) == task_id:
        return {**task, **changes}
    return task


def _patch_cached(value: Any, task_id: str, changes: dict[str, Any]) -> Any:
    """Apply `changes` to the task inside a cached list or single task."""
    if isinstance(value, list):
        return [_patch_task(t, task_id, changes) if isinstance(t, dict) else t for t in value]
    if isinstance(value, dict):
        return _patch_task(value, task_id, changes)
    return value


class ProjectDeskClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        cache: QueryCache | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self.cache = cache or QueryCache()

    async def __aenter__(self) -> ProjectDeskClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: str) -> None:
        self._http.headers["Authorization"] = f"Bearer {token}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, **kwargs)
        if response.is_error:
            error = ApiError.from_response(response)
            logger.warning(
                "API request failed",
                method=method,
                path=path,
                status_code=error.status_code,
                error=error.message,
            )
            raise error
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ─── Auth ─────────────────────────────────

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and use the returned token for subsequent requests."""
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.set_token(data["access_token"])
        return data

    async def me(self) -> dict[str, Any]:
        return await self._request("GET", "/auth/me")

    # ─── Tasks ────────────────────────────────

    async def list_tasks(self, project_id: str | None = None) -> list[dict[str, Any]]:
        """Fetch tasks, serving repeat calls from the cache."""
        key = ("tasks", project_id)
        if key in self.cache:
            return self.cache.get(key)
        params = {"project_id": project_id} if project_id else None
        tasks = await self._request("GET", "/tasks", params=params)
        self.cache.set(key, tasks)
        return tasks

    async def get_board(self, project_id: str | None = None) -> list[dict[str, Any]]:
        params = {"project_id": project_id} if project_id else None
        return await self._request("GET", "/tasks/board", params=params)

    async def create_task(self, **fields: Any) -> dict[str, Any]:
        task = await self._request("POST", "/tasks", json=fields)
        self.cache.invalidate(("tasks",))
        return task

    async def update_task(self, task_id: str, **changes: Any) -> dict[str, Any]:
        """
        Optimistically apply `changes` to every cached task list, then PATCH.

        A failed request puts the cached lists back as they were and
        re-raises.  Either way the task lists are invalidated once the
        request settles so the next read fetches fresh data.
        """
        task_id = str(task_id)
        snapshot = self.cache.snapshot(("tasks",))
        self.cache.set_matching(("tasks",), lambda value: _patch_cached(value, task_id, changes))
        try:
            return await self._request("PATCH", f"/tasks/{task_id}", json=changes)
        except (ApiError, httpx.HTTPError):
            self.cache.restore(snapshot, ("tasks",))
            raise
        finally:
            self.cache.invalidate(("tasks",))

    async def move_task(
        self,
        task_id: str,
        status: str,
        rejection_reason: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"status": status}
        if rejection_reason is not None:
            body["rejection_reason"] = rejection_reason
        task = await self._request("POST", f"/tasks/{task_id}/move", json=body)
        self.cache.invalidate(("tasks",))
        return task

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")
        self.cache.invalidate(("tasks",))

    async def list_archived(self, **params: Any) -> dict[str, Any]:
        return await self._request("GET", "/tasks/archived", params=params)

    async def auto_archive(self) -> dict[str, Any]:
        result = await self._request("POST", "/tasks/auto-archive")
        self.cache.invalidate(("tasks",))
        return result

    # ─── Comments ─────────────────────────────

    async def list_comments(self, task_id: str) -> list[dict[str, Any]]:
        key = ("comments", task_id)
        if key in self.cache:
            return self.cache.get(key)
        comments = await self._request("GET", f"/tasks/{task_id}/comments")
        self.cache.set(key, comments)
        return comments

    async def add_comment(self, task_id: str, content: str) -> dict[str, Any]:
        comment = await self._request("POST", f"/tasks/{task_id}/comments", json={"content": content})
        self.cache.invalidate(("comments", task_id))
        return comment

    async def edit_comment(self, comment_id: str, content: str) -> dict[str, Any]:
        return await self._request("PATCH", f"/comments/{comment_id}", json={"content": content})

    async def delete_comment(self, comment_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/comments/{comment_id}")

    # ─── Notifications ────────────────────────

    async def list_notifications(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/notifications")

    async def unread_notification_count(self) -> int:
        return (await self._request("GET", "/notifications/unread-count"))["count"]

    # ─── Finance ──────────────────────────────

    async def finance_summary(self) -> dict[str, Any]:
        return await self._request("GET", "/finance/summary")

    async def pay_recurring(self, charge_id: str, payment_date: str) -> dict[str, Any]:
        return await self._request(
            "POST", f"/finance/recurring/{charge_id}/pay", json={"payment_date": payment_date}
        )

    # ─── Settings ─────────────────────────────

    async def get_kanban_colors(self) -> dict[str, dict[str, str]]:
        return (await self._request("GET", "/settings/kanban-colors"))["colors"]

    # ─── Realtime ─────────────────────────────

    def handle_change(self, message: dict[str, Any]) -> int:
        """Invalidate cached queries touched by a realtime change message."""
        prefix = TABLE_CACHE_PREFIXES.get(message.get("table", ""))
        if prefix is None:
            return 0
        return self.cache.invalidate(prefix)
