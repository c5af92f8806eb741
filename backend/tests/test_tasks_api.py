"""Task endpoints: visibility, developer limits, moves, archive listing."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from app.core.errors import PermissionDeniedError
from app.db.models import Notification, Task
from app.db.models.base import utcnow
from app.services import tasks as task_service
from tests.conftest import auth, make_task


async def _notifications_for(db, user):
    result = await db.execute(select(Notification).where(Notification.user_id == user.id))
    return list(result.scalars().all())


# ===========================================================================
# Visibility
# ===========================================================================

class TestVisibility:
    async def test_dev_lists_only_assigned_tasks(self, client, db, users, project):
        mine = await make_task(db, project, title="Mine", assigned_to=users["dev"].id)
        await make_task(db, project, title="Theirs", assigned_to=users["dev2"].id)

        response = await client.get("/tasks", headers=auth(users["dev"]))

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [str(mine.id)]

    async def test_pm_lists_every_task(self, client, db, users, project):
        await make_task(db, project, assigned_to=users["dev"].id)
        await make_task(db, project, assigned_to=users["dev2"].id)

        response = await client.get("/tasks", headers=auth(users["pm"]))

        assert len(response.json()) == 2

    async def test_other_devs_task_is_not_found(self, client, db, users, project):
        task = await make_task(db, project, assigned_to=users["dev2"].id)

        response = await client.get(f"/tasks/{task.id}", headers=auth(users["dev"]))

        assert response.status_code == 404
        assert response.json()["error"] == "Task not found"

    async def test_archived_tasks_hidden_unless_requested(self, client, db, users, project):
        await make_task(db, project, status="archived", archived_at=utcnow())
        await make_task(db, project, status="todo")

        default = await client.get("/tasks", headers=auth(users["pm"]))
        everything = await client.get(
            "/tasks", params={"include_archived": "true"}, headers=auth(users["pm"])
        )

        assert len(default.json()) == 1
        assert len(everything.json()) == 2

    async def test_missing_token_is_rejected(self, client, users):
        response = await client.get("/tasks")
        assert response.status_code == 401


# ===========================================================================
# Create / update
# ===========================================================================

class TestCreateAndUpdate:
    async def test_pm_creates_task_and_assignee_is_notified(self, client, db, users, project):
        response = await client.post(
            "/tasks",
            json={
                "project_id": str(project.id),
                "title": "Set up CI",
                "assigned_to": str(users["dev"].id),
                "priority": "high",
            },
            headers=auth(users["pm"]),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "todo"
        assert body["created_by"] == str(users["pm"].id)
        assert body["assignee"]["id"] == str(users["dev"].id)

        notes = await _notifications_for(db, users["dev"])
        assert [n.type for n in notes] == ["task_assigned"]

    async def test_dev_cannot_create_tasks(self, client, users, project):
        response = await client.post(
            "/tasks",
            json={"project_id": str(project.id), "title": "Sneaky"},
            headers=auth(users["dev"]),
        )
        assert response.status_code == 403

    async def test_dev_cannot_edit_title(self, client, db, users, project):
        task = await make_task(db, project, assigned_to=users["dev"].id)

        response = await client.patch(
            f"/tasks/{task.id}", json={"title": "Renamed"}, headers=auth(users["dev"])
        )

        assert response.status_code == 403
        assert response.json()["details"]["fields"] == ["title"]

    async def test_dev_cannot_patch_to_done(self, client, db, users, project):
        task = await make_task(db, project, status="review", assigned_to=users["dev"].id)

        response = await client.patch(
            f"/tasks/{task.id}", json={"status": "done"}, headers=auth(users["dev"])
        )

        assert response.status_code == 403

    async def test_dev_notes_flag_observation_for_pm(self, client, db, users, project):
        task = await make_task(db, project, assigned_to=users["dev"].id)

        response = await client.patch(
            f"/tasks/{task.id}", json={"dev_notes": "Blocked on API keys"}, headers=auth(users["dev"])
        )

        body = response.json()
        assert response.status_code == 200
        assert body["dev_notes"] == "Blocked on API keys"
        assert body["observation_read_by_pm"] is False
        assert body["dev_notes_timestamp"] is not None

        read = await client.post(f"/tasks/{task.id}/observations/read", headers=auth(users["pm"]))
        assert read.json()["observation_read_by_pm"] is True

    async def test_only_managers_acknowledge_dev_notes(self, client, db, users, project):
        task = await make_task(db, project, assigned_to=users["dev"].id, observation_read_by_pm=False)

        refused = await client.post(f"/tasks/{task.id}/observations/read", headers=auth(users["dev"]))
        with pytest.raises(PermissionDeniedError):
            await task_service.mark_observation_read(db, users["dev"], task.id)
        accepted = await client.post(f"/tasks/{task.id}/observations/read", headers=auth(users["admin"]))

        assert refused.status_code == 403
        assert accepted.status_code == 200
        assert accepted.json()["observation_read_by_pm"] is True

    async def test_pm_can_clear_due_date(self, client, db, users, project):
        task = await make_task(db, project, due_date=utcnow().date())

        response = await client.patch(
            f"/tasks/{task.id}", json={"due_date": None}, headers=auth(users["pm"])
        )

        assert response.json()["due_date"] is None


# ===========================================================================
# Kanban moves
# ===========================================================================

class TestMoves:
    async def test_dev_moves_to_review_and_creator_is_notified(self, client, db, users, project):
        task = await make_task(
            db, project, status="in_progress", assigned_to=users["dev"].id, created_by=users["pm"].id
        )

        response = await client.post(
            f"/tasks/{task.id}/move", json={"status": "review"}, headers=auth(users["dev"])
        )

        assert response.status_code == 200
        assert response.json()["status"] == "review"
        notes = await _notifications_for(db, users["pm"])
        assert [n.type for n in notes] == ["task_ready_review"]

    async def test_rejection_without_reason_is_422(self, client, db, users, project):
        task = await make_task(db, project, status="review", assigned_to=users["dev"].id)

        response = await client.post(
            f"/tasks/{task.id}/move", json={"status": "todo"}, headers=auth(users["pm"])
        )

        assert response.status_code == 422
        assert response.json()["error"] == "A rejection reason is required"

    async def test_rejection_flags_dev_until_acknowledged(self, client, db, users, project):
        task = await make_task(db, project, status="review", assigned_to=users["dev"].id)

        response = await client.post(
            f"/tasks/{task.id}/move",
            json={"status": "todo", "rejection_reason": "Missing tests"},
            headers=auth(users["pm"]),
        )
        body = response.json()
        assert body["review_status"] == "rejected"
        assert body["rejection_reason"] == "Missing tests"
        assert body["rejection_read_by_dev"] is False
        assert [n.type for n in await _notifications_for(db, users["dev"])] == ["task_rejected"]

        ack = await client.post(f"/tasks/{task.id}/rejection/read", headers=auth(users["dev"]))
        assert ack.json()["rejection_read_by_dev"] is True

    async def test_approval_sets_completed_at(self, client, db, users, project):
        task = await make_task(db, project, status="review", assigned_to=users["dev"].id)

        response = await client.post(
            f"/tasks/{task.id}/move", json={"status": "done"}, headers=auth(users["pm"])
        )

        body = response.json()
        assert body["review_status"] == "approved"
        assert body["completed_at"] is not None

    async def test_board_for_dev(self, client, db, users, project):
        await make_task(db, project, status="todo", assigned_to=users["dev"].id)
        await make_task(db, project, status="review", assigned_to=users["dev"].id)
        await make_task(db, project, status="todo", assigned_to=users["dev2"].id)

        response = await client.get("/tasks/board", headers=auth(users["dev"]))

        columns = response.json()
        assert [c["title"] for c in columns] == ["To do", "In progress", "Ready for review"]
        assert [len(c["tasks"]) for c in columns] == [1, 0, 1]
        assert columns[0]["tasks"][0]["is_overdue"] is False


# ===========================================================================
# Archive, stats, delete
# ===========================================================================

class TestArchiveListing:
    async def _archive_many(self, db, project, count, **fields):
        now = utcnow()
        for i in range(count):
            await make_task(
                db,
                project,
                title=f"Archived {i:02d}",
                status="archived",
                archived_at=now - timedelta(minutes=i),
                **fields,
            )

    async def test_pagination(self, client, db, users, project):
        await self._archive_many(db, project, 12)

        first = await client.get(
            "/tasks/archived", params={"page": 1, "page_size": 10}, headers=auth(users["pm"])
        )
        second = await client.get(
            "/tasks/archived", params={"page": 2, "page_size": 10}, headers=auth(users["pm"])
        )

        assert first.json()["total"] == 12
        assert first.json()["total_pages"] == 2
        assert [t["title"] for t in first.json()["data"]][:2] == ["Archived 00", "Archived 01"]
        assert len(second.json()["data"]) == 2

    async def test_unsupported_page_size(self, client, users):
        response = await client.get(
            "/tasks/archived", params={"page_size": 7}, headers=auth(users["pm"])
        )
        assert response.status_code == 422

    async def test_search_matches_title_case_insensitively(self, client, db, users, project):
        await self._archive_many(db, project, 3)
        await make_task(db, project, title="Payment gateway", status="archived", archived_at=utcnow())

        response = await client.get(
            "/tasks/archived", params={"search": "GATEWAY"}, headers=auth(users["pm"])
        )

        assert [t["title"] for t in response.json()["data"]] == ["Payment gateway"]

    async def test_dev_sees_only_own_archive(self, client, db, users, project):
        await self._archive_many(db, project, 2, assigned_to=users["dev"].id)
        await self._archive_many(db, project, 3, assigned_to=users["dev2"].id)

        response = await client.get("/tasks/archived", headers=auth(users["dev"]))

        assert response.json()["total"] == 2


class TestStatsAndDelete:
    async def test_stats_counts_statuses_and_overdue(self, client, db, users, project):
        yesterday = utcnow().date() - timedelta(days=1)
        await make_task(db, project, status="todo", due_date=yesterday)
        await make_task(db, project, status="done", due_date=yesterday)
        await make_task(db, project, status="review")

        stats = (await client.get("/tasks/stats", headers=auth(users["pm"]))).json()

        assert stats["todo"] == 1
        assert stats["done"] == 1
        assert stats["review"] == 1
        assert stats["total"] == 3
        assert stats["overdue"] == 1

    async def test_delete_removes_task_and_files(self, client, db, users, project, store):
        task = await make_task(db, project, assigned_to=users["dev"].id)
        upload = await client.post(
            f"/tasks/{task.id}/attachments",
            files={"file": ("spec.pdf", b"%PDF-1.4", "application/pdf")},
            headers=auth(users["dev"]),
        )
        assert upload.status_code == 201
        assert len(store.objects) == 1

        response = await client.delete(f"/tasks/{task.id}", headers=auth(users["pm"]))

        assert response.status_code == 204
        assert store.objects == {}
        assert (await db.execute(select(Task).where(Task.id == task.id))).scalar_one_or_none() is None
