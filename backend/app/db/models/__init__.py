"""
Models package — re-exports Base and all models.

Import models here so Alembic's `target_metadata = Base.metadata`
picks up every table automatically.

When adding a new model:
    1. Create `app/db/models/<table_name>.py`
    2. Import it here
"""

from app.db.models.base import Base
from app.db.models.client import Client
from app.db.models.kv_entry import KVEntry
from app.db.models.notification import Notification
from app.db.models.payment import Payment
from app.db.models.payment_method import PaymentMethod
from app.db.models.project import Project
from app.db.models.project_cost import ProjectCost
from app.db.models.project_finance import ProjectFinance
from app.db.models.project_member import ProjectMember
from app.db.models.recurring_charge import RecurringCharge
from app.db.models.task import Task
from app.db.models.task_attachment import TaskAttachment
from app.db.models.task_comment import TaskComment
from app.db.models.user import User

__all__ = [
    "Base",
    "Client",
    "KVEntry",
    "Notification",
    "Payment",
    "PaymentMethod",
    "Project",
    "ProjectCost",
    "ProjectFinance",
    "ProjectMember",
    "RecurringCharge",
    "Task",
    "TaskAttachment",
    "TaskComment",
    "User",
]
