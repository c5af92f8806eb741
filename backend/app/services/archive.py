"""
Auto-archive sweep.

Moves tasks that have sat in `done` for longer than
`AUTO_ARCHIVE_AFTER_HOURS` into `archived`.  Runs hourly from Celery
beat and on demand from `POST /tasks/auto-archive`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import ChangeEvent
from app.core.logging import get_logger
from app.db.models.base import utcnow
from app.realtime.feed import record_change
from app.repositories import tasks as task_repository

logger = get_logger(__name__)


async def auto_archive_done_tasks(db: AsyncSession, *, now: datetime | None = None) -> dict[str, Any]:
    """
    Archive every task with status=done, completed_at older than the
    cutoff and archived_at still empty.

    Returns a summary with the archived ids and titles.
    """
    now = now or utcnow()
    cutoff = now - timedelta(hours=settings.AUTO_ARCHIVE_AFTER_HOURS)
    logger.info("Auto-archive sweep started", cutoff=cutoff.isoformat())

    candidates = await task_repository.list_archivable(db, completed_before=cutoff)
    if not candidates:
        logger.info("Auto-archive sweep found nothing to archive")
        return {
            "success": True,
            "archived_count": 0,
            "archived_tasks": [],
            "message": "No tasks to archive",
        }

    archived = [{"id": task.id, "title": task.title} for task in candidates]
    count = await task_repository.archive_tasks(db, [t.id for t in candidates], archived_at=now)

    for task in candidates:
        record_change(
            db,
            "tasks",
            ChangeEvent.UPDATE,
            task.id,
            project_id=task.project_id,
            assigned_to=task.assigned_to,
        )

    logger.info("Auto-archive sweep finished", archived_count=count)
    return {
        "success": True,
        "archived_count": count,
        "archived_tasks": archived,
        "message": f"{count} tasks archived",
    }
