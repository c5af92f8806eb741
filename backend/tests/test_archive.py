"""Auto-archive sweep of tasks that have been done for over a day."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select

from app.db.models import Task
from app.db.models.base import utcnow
from app.services.archive import auto_archive_done_tasks
from tests.conftest import auth, make_task


class TestAutoArchive:
    async def test_nothing_to_archive(self, db, project):
        await make_task(db, project, status="done", completed_at=utcnow() - timedelta(hours=2))

        result = await auto_archive_done_tasks(db)

        assert result == {
            "success": True,
            "archived_count": 0,
            "archived_tasks": [],
            "message": "No tasks to archive",
        }

    async def test_archives_only_stale_done_tasks(self, db, project):
        now = utcnow()
        stale = await make_task(db, project, title="Stale", status="done", completed_at=now - timedelta(hours=25))
        await make_task(db, project, title="Fresh", status="done", completed_at=now - timedelta(hours=23))
        await make_task(db, project, title="Open", status="in_progress")
        await make_task(db, project, title="Undated", status="done")

        result = await auto_archive_done_tasks(db, now=now)
        await db.commit()

        assert result["archived_count"] == 1
        assert result["archived_tasks"] == [{"id": stale.id, "title": "Stale"}]
        assert result["message"] == "1 tasks archived"

        row = (
            await db.execute(
                select(Task).where(Task.id == stale.id).execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert row.status == "archived"
        assert row.archived_at is not None

    async def test_endpoint_is_manager_only(self, client, db, users, project):
        await make_task(db, project, status="done", completed_at=utcnow() - timedelta(days=2))

        refused = await client.post("/tasks/auto-archive", headers=auth(users["dev"]))
        allowed = await client.post("/tasks/auto-archive", headers=auth(users["pm"]))

        assert refused.status_code == 403
        assert allowed.json()["archived_count"] == 1
        assert allowed.json()["message"] == "1 tasks archived"

    async def test_pm_move_to_done_is_picked_up_later(self, client, db, users, project):
        task = await make_task(db, project, status="in_progress")
        await client.post(f"/tasks/{task.id}/move", json={"status": "done"}, headers=auth(users["pm"]))

        result = await auto_archive_done_tasks(db, now=utcnow() + timedelta(days=2))

        assert result["archived_count"] == 1
