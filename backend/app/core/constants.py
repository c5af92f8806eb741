"""Shared constants and enums used across the application."""

from enum import StrEnum


class UserRole(StrEnum):
    """Application roles for authenticated users."""

    ADMIN = "admin"
    PM = "pm"
    DEV = "dev"
    ADVISOR = "advisor"


class ProjectStatus(StrEnum):
    """Lifecycle status of a client project."""

    PLANNING = "planning"
    IN_DEVELOPMENT = "in_development"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(StrEnum):
    """Kanban column a task sits in."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    ARCHIVED = "archived"


class TaskPriority(StrEnum):
    """Task urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReviewStatus(StrEnum):
    """PM review outcome for a task."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(StrEnum):
    """Collection status of a payment."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentType(StrEnum):
    """Direction of money flow."""

    INCOME = "income"
    EXPENSE = "expense"


class ChargePeriod(StrEnum):
    """Billing period of a recurring charge."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    CUSTOM = "custom"


class NotificationType(StrEnum):
    """Kinds of in-app notifications."""

    TASK_ASSIGNED = "task_assigned"
    TASK_READY_REVIEW = "task_ready_review"
    TASK_APPROVED = "task_approved"
    TASK_REJECTED = "task_rejected"
    TASK_COMMENTED = "task_commented"
    PAYMENT_RECEIVED = "payment_received"
    USER_REGISTERED = "user_registered"
    PROJECT_CREATED = "project_created"
    RECURRING_CHARGE_DUE_SOON = "recurring_charge_due_soon"
    RECURRING_EXPENSE_DUE_SOON = "recurring_expense_due_soon"


class ChangeEvent(StrEnum):
    """Row-level change kinds pushed on the realtime feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# Roles allowed to see and operate on finance data
FINANCE_ROLES = (UserRole.ADMIN, UserRole.ADVISOR)

# Roles allowed to manage projects and tasks
MANAGER_ROLES = (UserRole.ADMIN, UserRole.PM)

DEFAULT_KANBAN_COLORS: dict[str, dict[str, str]] = {
    "dev": {
        "todo": "bg-gray-100",
        "in_progress": "bg-blue-100",
        "review": "bg-yellow-100",
    },
    "pm": {
        "todo": "bg-purple-100",
        "review": "bg-yellow-100",
        "done": "bg-green-100",
    },
}

FALLBACK_KANBAN_COLOR = "bg-gray-100"

KANBAN_COLORS_KEY = "kanban_colors"
