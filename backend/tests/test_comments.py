"""Comments: author-only edits inside the window, soft deletes, unread tracking."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from app.db.models import TaskComment
from app.db.models.base import utcnow
from app.services.comments import can_edit_comment, format_relative_time
from tests.conftest import auth, make_task

NOW = datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)


class TestEditWindow:
    def test_boundary_is_inclusive(self):
        assert can_edit_comment(NOW - timedelta(minutes=5), now=NOW) is True

    def test_one_second_late(self):
        assert can_edit_comment(NOW - timedelta(minutes=5, seconds=1), now=NOW) is False

    def test_naive_timestamps_are_treated_as_utc(self):
        assert can_edit_comment(datetime(2026, 5, 1, 9, 28), now=NOW) is True


class TestRelativeTime:
    @pytest.mark.parametrize(
        ("delta", "label"),
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=1), "1 minute ago"),
            (timedelta(minutes=45), "45 minutes ago"),
            (timedelta(hours=3), "3 hours ago"),
            (timedelta(days=1, hours=2), "Yesterday"),
            (timedelta(days=4), "4 days ago"),
            (timedelta(days=15), "2 weeks ago"),
            (timedelta(days=65), "2 months ago"),
            (timedelta(days=800), "2 years ago"),
        ],
    )
    def test_labels(self, delta, label):
        assert format_relative_time(NOW - delta, now=NOW) == label


@pytest.fixture
async def task(db, users, project):
    return await make_task(db, project, assigned_to=users["dev"].id, created_by=users["pm"].id)


async def _post(client, task, user, content="Looks good"):
    response = await client.post(
        f"/tasks/{task.id}/comments", json={"content": content}, headers=auth(user)
    )
    assert response.status_code == 201
    return response.json()


async def _age(db, comment_id, minutes):
    await db.execute(
        update(TaskComment)
        .where(TaskComment.id == uuid.UUID(comment_id))
        .values(created_at=utcnow() - timedelta(minutes=minutes))
    )
    await db.commit()


class TestCommentApi:
    async def test_post_and_list(self, client, task, users):
        created = await _post(client, task, users["pm"], "  Please add docs  ")
        assert created["content"] == "Please add docs"
        assert created["editable"] is True
        assert created["read_by"] == [str(users["pm"].id)]

        listed = await client.get(f"/tasks/{task.id}/comments", headers=auth(users["dev"]))
        assert [c["id"] for c in listed.json()] == [created["id"]]

    async def test_empty_comment_rejected(self, client, task, users):
        response = await client.post(
            f"/tasks/{task.id}/comments", json={"content": "   "}, headers=auth(users["pm"])
        )
        assert response.status_code == 422

    async def test_author_edits_within_window(self, client, task, users):
        created = await _post(client, task, users["dev"])

        response = await client.patch(
            f"/comments/{created['id']}", json={"content": "Updated"}, headers=auth(users["dev"])
        )

        assert response.status_code == 200
        assert response.json()["content"] == "Updated"
        assert response.json()["is_edited"] is True

    async def test_other_user_cannot_edit(self, client, task, users):
        created = await _post(client, task, users["dev"])

        response = await client.patch(
            f"/comments/{created['id']}", json={"content": "Hijack"}, headers=auth(users["pm"])
        )

        assert response.status_code == 403

    async def test_edit_after_window_is_refused(self, client, db, task, users):
        created = await _post(client, task, users["dev"])
        await _age(db, created["id"], minutes=6)

        response = await client.patch(
            f"/comments/{created['id']}", json={"content": "Too late"}, headers=auth(users["dev"])
        )

        assert response.status_code == 403
        assert "5 minutes" in response.json()["error"]

    async def test_delete_is_soft_and_blanks_content(self, client, task, users):
        created = await _post(client, task, users["dev"], "Oops")

        deleted = await client.delete(f"/comments/{created['id']}", headers=auth(users["dev"]))
        assert deleted.status_code == 200
        assert deleted.json()["deleted_at"] is not None

        listed = (await client.get(f"/tasks/{task.id}/comments", headers=auth(users["pm"]))).json()
        assert listed[0]["content"] == ""
        assert listed[0]["editable"] is False

        again = await client.delete(f"/comments/{created['id']}", headers=auth(users["dev"]))
        assert again.status_code == 409

    async def test_comments_of_removed_users_are_dropped(self, client, task, users):
        await _post(client, task, users["pm"], "From the PM")
        kept = await _post(client, task, users["dev"], "From the dev")

        removed = await client.delete(f"/users/{users['pm'].id}", headers=auth(users["admin"]))
        listed = await client.get(f"/tasks/{task.id}/comments", headers=auth(users["dev"]))

        assert removed.status_code == 204
        assert [c["id"] for c in listed.json()] == [kept["id"]]

    async def test_unread_tracking(self, client, task, users):
        first = await _post(client, task, users["pm"], "First")
        await _post(client, task, users["pm"], "Second")

        count = await client.get(f"/tasks/{task.id}/comments/unread-count", headers=auth(users["dev"]))
        assert count.json()["count"] == 2

        marked = await client.post(
            f"/tasks/{task.id}/comments/read",
            json={"comment_ids": [first["id"]]},
            headers=auth(users["dev"]),
        )
        assert marked.json()["count"] == 1

        count = await client.get(f"/tasks/{task.id}/comments/unread-count", headers=auth(users["dev"]))
        assert count.json()["count"] == 1

    async def test_comment_notifies_assignee_and_creator_but_not_author(self, client, db, task, users):
        await _post(client, task, users["dev"])

        notes = (await client.get("/notifications", headers=auth(users["pm"]))).json()
        own = (await client.get("/notifications", headers=auth(users["dev"]))).json()

        assert [n["type"] for n in notes] == ["task_commented"]
        assert own == []
