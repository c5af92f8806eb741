"""
Celery configuration for ProjectDesk background jobs.

Loaded by `celery_app.config_from_object("celeryconfig")` in app/tasks/__init__.py.
All broker/result-backend URLs come from environment variables,
defaulting to localhost for local dev.
"""

import os

from celery.schedules import crontab

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

# ═══════════════════════════════════════════════════════════
#  Serialization
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone
# ═══════════════════════════════════════════════════════════

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

task_acks_late = True
task_reject_on_worker_lost = True
worker_prefetch_multiplier = 1

# Sweeps touch a handful of rows; anything slower is stuck
task_soft_time_limit = 300
task_time_limit = 360

task_default_retry_delay = 60
task_max_retries = 3

result_expires = 86400

worker_max_tasks_per_child = 200
worker_send_task_events = False
task_send_sent_event = False

# ═══════════════════════════════════════════════════════════
#  Task Routes
# ═══════════════════════════════════════════════════════════
#   celery -A app.tasks worker -Q maintenance
#   celery -A app.tasks beat

task_routes = {
    "app.tasks.archive_tasks.*": {"queue": "maintenance"},
    "app.tasks.finance_tasks.*": {"queue": "maintenance"},
}

task_default_queue = "default"

# ═══════════════════════════════════════════════════════════
#  Beat Schedule (periodic tasks)
# ═══════════════════════════════════════════════════════════

beat_schedule = {
    "auto-archive-done-tasks": {
        "task": "app.tasks.archive_tasks.auto_archive_done_tasks",
        "schedule": crontab(minute=0),
    },
    "notify-recurring-charges-due-soon": {
        "task": "app.tasks.finance_tasks.notify_recurring_charges_due_soon",
        "schedule": crontab(hour=8, minute=0),
    },
}
