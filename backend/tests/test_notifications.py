"""Per-user notification inbox."""

from __future__ import annotations

import pytest

from app.core.constants import NotificationType
from app.services import notifications as notification_service
from tests.conftest import auth


@pytest.fixture
async def inbox(db, users):
    """Three notifications for dev (one already read) and one for pm."""
    created = await notification_service.notify(
        db,
        [users["dev"].id, users["pm"].id],
        type=NotificationType.TASK_ASSIGNED,
        title="Task assigned",
        message="You have a new task",
    )
    more = await notification_service.notify(
        db,
        [users["dev"].id, users["dev"].id, None],
        type=NotificationType.TASK_COMMENTED,
        title="New comment",
        message="Someone commented",
    )
    last = await notification_service.notify(
        db,
        [users["dev"].id],
        type=NotificationType.TASK_COMMENTED,
        title="Read already",
        message="Old news",
    )
    last[0].is_read = True
    await db.commit()
    return {"dev": [created[0], more[0], last[0]], "pm": [created[1]]}


class TestInbox:
    async def test_list_is_owner_only_and_deduplicated(self, client, users, inbox):
        response = await client.get("/notifications", headers=auth(users["dev"]))

        assert len(response.json()) == 3
        ids = {n["id"] for n in response.json()}
        assert ids == {str(n.id) for n in inbox["dev"]}

    async def test_unread_count(self, client, users, inbox):
        response = await client.get("/notifications/unread-count", headers=auth(users["dev"]))
        assert response.json() == {"count": 2}

    async def test_read_all_then_delete_read(self, client, users, inbox):
        marked = await client.post("/notifications/read-all", headers=auth(users["dev"]))
        purged = await client.delete("/notifications/read", headers=auth(users["dev"]))
        remaining = await client.get("/notifications", headers=auth(users["dev"]))
        pm_count = await client.get("/notifications/unread-count", headers=auth(users["pm"]))

        assert marked.json() == {"count": 2}
        assert purged.json() == {"count": 3}
        assert remaining.json() == []
        assert pm_count.json() == {"count": 1}

    async def test_mark_single_read(self, client, users, inbox):
        target = inbox["dev"][0]

        response = await client.post(f"/notifications/{target.id}/read", headers=auth(users["dev"]))

        assert response.json()["success"] is True
        count = await client.get("/notifications/unread-count", headers=auth(users["dev"]))
        assert count.json() == {"count": 1}

    async def test_cannot_touch_someone_elses_notification(self, client, users, inbox):
        pm_note = inbox["pm"][0]

        read = await client.post(f"/notifications/{pm_note.id}/read", headers=auth(users["dev"]))
        deleted = await client.delete(f"/notifications/{pm_note.id}", headers=auth(users["dev"]))

        assert read.status_code == 404
        assert deleted.status_code == 404

    async def test_delete_own(self, client, users, inbox):
        target = inbox["pm"][0]

        response = await client.delete(f"/notifications/{target.id}", headers=auth(users["pm"]))

        assert response.status_code == 200
        listing = await client.get("/notifications", headers=auth(users["pm"]))
        assert listing.json() == []
