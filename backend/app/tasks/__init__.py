"""
Celery application factory.
"""

from celery import Celery

celery_app = Celery("projectdesk")
celery_app.config_from_object("celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks([
    "app.tasks.archive_tasks",
    "app.tasks.finance_tasks",
])
