"""
Celery tasks — periodic auto-archive of completed tasks.
"""

import asyncio

import structlog

from app.services.archive import auto_archive_done_tasks as archive_done_tasks
from app.tasks import celery_app
from app.tasks.db import run_in_session

logger = structlog.get_logger("tasks.archive")


def _serialize(result: dict) -> dict:
    return {
        **result,
        "archived_tasks": [
            {"id": str(t["id"]), "title": t["title"]} for t in result["archived_tasks"]
        ],
    }


@celery_app.task(bind=True, name="app.tasks.archive_tasks.auto_archive_done_tasks")
def auto_archive_done_tasks(self) -> dict:
    """Move tasks done for longer than the archive delay into `archived`."""
    task_log = logger.bind(task_id=self.request.id)
    task_log.info("Auto-archive task started")

    result = asyncio.run(run_in_session(archive_done_tasks))

    task_log.info("Auto-archive task finished", archived_count=result["archived_count"])
    return _serialize(result)
