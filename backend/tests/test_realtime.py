"""Change feed: filters, scoping, overflow and publish-after-commit."""

from __future__ import annotations

import asyncio

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.core.constants import ChangeEvent
from app.core.security import create_access_token
from app.db import session as db_session
from app.main import app
from app.realtime.feed import Change, ChangeFeed, change_feed, parse_filter, record_change
from tests.conftest import auth, make_task


# ─── Filters ──────────────────────────────────

@pytest.mark.parametrize(
    "expression, expected",
    [
        (None, None),
        ("", None),
        ("project_id=eq.abc", ("project_id", "abc")),
        ("id=eq.a=b", ("id", "a=b")),
    ],
)
def test_parse_filter(expression, expected):
    assert parse_filter(expression) == expected


@pytest.mark.parametrize("expression", ["project_id", "project_id=abc", "=eq.x", "project_id=eq.", "a=neq.b"])
def test_parse_filter_rejects(expression):
    with pytest.raises(ValueError):
        parse_filter(expression)


# ─── Fan-out ──────────────────────────────────

def _task_change(project_id="p1", record_id="t1"):
    return Change(table="tasks", event=ChangeEvent.UPDATE, record_id=record_id, keys={"project_id": project_id})


class TestChangeFeed:
    async def test_table_and_row_filters(self):
        feed = ChangeFeed()
        everything = feed.subscribe("u1")
        project_only = feed.subscribe("u1", table="tasks", filter_expression="project_id=eq.p1")
        by_id = feed.subscribe("u1", table="tasks", filter_expression="id=eq.t9")

        feed.publish(_task_change(project_id="p1"))
        feed.publish(_task_change(project_id="p2"))

        assert everything.queue.qsize() == 2
        assert project_only.queue.qsize() == 1
        assert by_id.queue.qsize() == 0
        assert project_only.queue.get_nowait() == {
            "table": "tasks",
            "event": "UPDATE",
            "record_id": "t1",
            "project_id": "p1",
        }

    async def test_notifications_reach_only_their_owner(self):
        feed = ChangeFeed()
        owner = feed.subscribe("u1", table="notifications")
        other = feed.subscribe("u2")

        delivered = feed.publish(
            Change(table="notifications", event=ChangeEvent.INSERT, record_id="n1", keys={"user_id": "u1"})
        )

        assert delivered == 1
        assert owner.queue.qsize() == 1
        assert other.queue.qsize() == 0

    async def test_developers_hear_only_their_own_tasks(self):
        feed = ChangeFeed()
        dev = feed.subscribe("u1", role="dev", table="tasks")
        pm = feed.subscribe("u2", role="pm", table="tasks")

        feed.publish(
            Change(table="tasks", event=ChangeEvent.UPDATE, record_id="t1", keys={"assigned_to": "u1"})
        )
        feed.publish(
            Change(table="tasks", event=ChangeEvent.UPDATE, record_id="t2", keys={"assigned_to": "u3"})
        )
        feed.publish(_task_change(record_id="t3"))

        assert dev.queue.get_nowait()["record_id"] == "t1"
        assert dev.queue.empty()
        assert pm.queue.qsize() == 3

    async def test_full_queue_drops_events(self):
        feed = ChangeFeed()
        slow = feed.subscribe("u1")
        slow.queue = asyncio.Queue(maxsize=1)
        fast = feed.subscribe("u2")

        feed.publish(_task_change(record_id="t1"))
        feed.publish(_task_change(record_id="t2"))

        assert slow.queue.qsize() == 1
        assert slow.dropped == 1
        assert slow.queue.get_nowait()["record_id"] == "t1"
        assert fast.queue.qsize() == 2

    async def test_unsubscribe(self):
        feed = ChangeFeed()
        subscription = feed.subscribe("u1")
        feed.unsubscribe(subscription)

        assert feed.subscriber_count == 0
        assert feed.publish(_task_change()) == 0


# ─── Transaction boundary ─────────────────────

@pytest.fixture
def subscriber():
    subscription = change_feed.subscribe("observer")
    yield subscription
    change_feed.unsubscribe(subscription)


class TestPublishAfterCommit:
    async def test_committed_request_is_published(self, client, users, project, subscriber):
        response = await client.patch(
            f"/projects/{project.id}", json={"description": "v2"}, headers=auth(users["pm"])
        )

        assert response.status_code == 200
        message = subscriber.queue.get_nowait()
        assert message == {"table": "projects", "event": "UPDATE", "record_id": str(project.id)}

    async def test_task_update_skips_developers_not_assigned(self, client, db, users, project):
        task = await make_task(db, project, assigned_to=users["dev2"].id)
        assignee = change_feed.subscribe(users["dev2"].id, role="dev", table="tasks")
        bystander = change_feed.subscribe(users["dev"].id, role="dev", table="tasks")
        try:
            response = await client.patch(
                f"/tasks/{task.id}", json={"priority": "high"}, headers=auth(users["pm"])
            )

            assert response.status_code == 200
            assert assignee.queue.get_nowait()["record_id"] == str(task.id)
            assert bystander.queue.empty()
        finally:
            change_feed.unsubscribe(assignee)
            change_feed.unsubscribe(bystander)

    async def test_rolled_back_changes_are_discarded(self, session_factory, subscriber):
        sessions = db_session.get_db()
        session = await sessions.__anext__()
        record_change(session, "tasks", ChangeEvent.INSERT, "t1", project_id="p1")

        with pytest.raises(RuntimeError):
            await sessions.athrow(RuntimeError("boom"))

        assert subscriber.queue.empty()
        assert "pending_changes" not in session.info

    async def test_failed_request_publishes_nothing(self, client, users, subscriber):
        response = await client.post(
            "/projects",
            json={"name": "Orphan", "client_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth(users["pm"]),
        )

        assert response.status_code == 404
        assert subscriber.queue.empty()


# ─── WebSocket handshake ──────────────────────

class TestRealtimeSocket:
    def test_rejects_missing_token(self):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with TestClient(app).websocket_connect("/api/v1/realtime"):
                pass
        assert exc_info.value.code == 1008

    def test_rejects_bad_filter(self):
        token = create_access_token({"sub": "00000000-0000-0000-0000-000000000001", "role": "dev"})
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with TestClient(app).websocket_connect(f"/api/v1/realtime?token={token}&filter=project_id"):
                pass
        assert exc_info.value.code == 1008
