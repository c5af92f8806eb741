"""
Celery tasks — recurring charge reminders.
"""

import asyncio

import structlog

from app.services.finance import notify_due_soon
from app.tasks import celery_app
from app.tasks.db import run_in_session

logger = structlog.get_logger("tasks.finance")


@celery_app.task(bind=True, name="app.tasks.finance_tasks.notify_recurring_charges_due_soon")
def notify_recurring_charges_due_soon(self) -> dict:
    """Notify admins and advisors about recurring charges due within a week."""
    task_log = logger.bind(task_id=self.request.id)

    created = asyncio.run(run_in_session(notify_due_soon))

    task_log.info("Due-soon reminders sent", notifications=created)
    return {"notifications_created": created}
