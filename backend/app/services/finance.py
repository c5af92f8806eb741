"""
Finance service — payments, costs, recurring charges and reporting.

Summary figures use the net value of a payment
(`amount - hosting_cost - domain_cost - other_cost`); reports use the
gross amount.  Costs are the project cost rows.
Soft-deleted payments never contribute to any figure.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, timedelta
from typing import Any

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import (
    FINANCE_ROLES,
    ChangeEvent,
    ChargePeriod,
    NotificationType,
    PaymentStatus,
    PaymentType,
    ProjectStatus,
)
from app.core.errors import DomainValidationError, NotFoundError
from app.core.logging import get_logger
from app.db.models.base import utcnow
from app.db.models.payment import Payment
from app.db.models.payment_method import PaymentMethod
from app.db.models.project_cost import ProjectCost
from app.db.models.recurring_charge import RecurringCharge
from app.db.models.user import User
from app.realtime.feed import record_change
from app.repositories import notifications as notification_repository
from app.repositories import payment_methods as method_repository
from app.repositories import payments as payment_repository
from app.repositories import projects as project_repository
from app.repositories import recurring_charges as charge_repository
from app.repositories import users as user_repository
from app.services import notifications as notification_service

logger = get_logger(__name__)


def _money(value: float) -> float:
    return round(value, 2)


def net_amount(payment: Payment) -> float:
    return _money(payment.net_amount)


# ─── Period arithmetic ────────────────────────

def advance_due_date(current: date, period: str, custom_days: int | None = None) -> date:
    """Next due date one billing period after `current`; month ends are clamped."""
    if period == ChargePeriod.MONTHLY:
        return current + relativedelta(months=1)
    if period == ChargePeriod.QUARTERLY:
        return current + relativedelta(months=3)
    if period == ChargePeriod.ANNUAL:
        return current + relativedelta(years=1)
    if period == ChargePeriod.CUSTOM:
        if not custom_days or custom_days <= 0:
            raise DomainValidationError(
                "Custom period requires a positive number of days",
                details={"custom_days": custom_days},
            )
        return current + timedelta(days=custom_days)
    raise DomainValidationError("Unknown charge period", details={"period": period})


def default_report_window(today: date) -> tuple[date, date]:
    """Jan 1 of last year through Dec 31 of this year."""
    return date(today.year - 1, 1, 1), date(today.year, 12, 31)


# ─── Summaries & reports ──────────────────────

async def get_summary(db: AsyncSession) -> dict[str, Any]:
    payments = await payment_repository.list_payments(db)
    totals = defaultdict(float)
    for payment in payments:
        totals[payment.status] += payment.net_amount

    total_costs = await payment_repository.total_costs(db)
    revenue = totals[PaymentStatus.PAID.value]
    next_charge = await charge_repository.next_due(db)

    return {
        "total_revenue": _money(revenue),
        "total_pending": _money(totals[PaymentStatus.PENDING.value]),
        "total_overdue": _money(totals[PaymentStatus.OVERDUE.value]),
        "total_costs": _money(total_costs),
        "net_profit": _money(revenue - total_costs),
        "active_projects": await project_repository.count_projects(
            db, status=ProjectStatus.ACTIVE.value
        ),
        "next_recurring": next_charge,
    }


async def get_project_finances(db: AsyncSession, project_id: uuid.UUID) -> dict[str, Any]:
    project = await project_repository.get_project(db, project_id)
    if project is None:
        raise NotFoundError("Project not found", details={"project_id": str(project_id)})

    finance = await project_repository.get_finance(db, project_id)
    payments = await payment_repository.list_payments(db, project_id=project_id)
    costs = await payment_repository.list_costs(db, project_id=project_id)
    charges = await charge_repository.list_for_project(db, project_id)

    total_paid = sum(p.net_amount for p in payments if p.status == PaymentStatus.PAID)
    total_pending = sum(p.net_amount for p in payments if p.status == PaymentStatus.PENDING)
    total_costs = sum(c.amount for c in costs)
    contract_value = finance.total_value if finance else 0.0

    return {
        "finance": finance,
        "payments": payments,
        "costs": costs,
        "recurring_charges": charges,
        "summary": {
            "total_paid": _money(total_paid),
            "total_pending": _money(total_pending),
            "total_costs": _money(total_costs),
            "profit": _money(total_paid - total_costs),
            "contract_value": _money(contract_value),
            "remaining": _money(contract_value - total_paid),
        },
    }


async def get_reports(
    db: AsyncSession,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    default_start, default_end = default_report_window(today or utcnow().date())
    start_date = start_date or default_start
    end_date = end_date or default_end
    if start_date > end_date:
        raise DomainValidationError(
            "start_date must not be after end_date",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )

    payments = await payment_repository.list_payments(
        db,
        status=PaymentStatus.PAID.value,
        start_date=start_date,
        end_date=end_date,
    )
    costs = await payment_repository.list_costs(db, start_date=start_date, end_date=end_date)

    payments_by_month: dict[str, float] = defaultdict(float)
    revenue_by_project: dict[uuid.UUID, dict[str, Any]] = {}
    for payment in payments:
        payments_by_month[payment.payment_date.strftime("%Y-%m")] += payment.amount
        row = revenue_by_project.setdefault(
            payment.project_id,
            {
                "project_id": payment.project_id,
                "project_name": payment.project.name if payment.project else None,
                "revenue": 0.0,
            },
        )
        row["revenue"] += payment.amount

    costs_by_month: dict[str, float] = defaultdict(float)
    costs_by_category: dict[str, float] = defaultdict(float)
    for cost in costs:
        costs_by_month[cost.cost_date.strftime("%Y-%m")] += cost.amount
        costs_by_category[cost.category or "other"] += cost.amount

    for row in revenue_by_project.values():
        row["revenue"] = _money(row["revenue"])

    return {
        "start_date": start_date,
        "end_date": end_date,
        "payments_by_month": {k: _money(v) for k, v in sorted(payments_by_month.items())},
        "costs_by_month": {k: _money(v) for k, v in sorted(costs_by_month.items())},
        "costs_by_category": {k: _money(v) for k, v in sorted(costs_by_category.items())},
        "revenue_by_project": sorted(
            revenue_by_project.values(), key=lambda r: r["revenue"], reverse=True
        ),
    }


# ─── Payments ─────────────────────────────────

async def _require_project(db: AsyncSession, project_id: uuid.UUID) -> None:
    if await project_repository.get_project(db, project_id) is None:
        raise NotFoundError("Project not found", details={"project_id": str(project_id)})


def _record_payment(db: AsyncSession, event: ChangeEvent, payment: Payment) -> None:
    record_change(db, "payments", event, payment.id, project_id=payment.project_id)


async def list_payments(db: AsyncSession, *, project_id: uuid.UUID | None = None) -> list[Payment]:
    return await payment_repository.list_payments(db, project_id=project_id)


async def list_deleted_payments(db: AsyncSession) -> list[Payment]:
    return await payment_repository.list_deleted_payments(db)


async def create_payment(db: AsyncSession, user: User, data: dict[str, Any]) -> Payment:
    await _require_project(db, data["project_id"])
    payment = await payment_repository.create_payment(db, created_by=user.id, **data)
    _record_payment(db, ChangeEvent.INSERT, payment)
    logger.info("Payment recorded", payment_id=str(payment.id), amount=payment.amount)

    if payment.status == PaymentStatus.PAID and payment.type == PaymentType.INCOME:
        project_name = payment.project.name if payment.project else "a project"
        await notification_service.notify_roles(
            db,
            FINANCE_ROLES,
            type=NotificationType.PAYMENT_RECEIVED,
            title="Payment received",
            message=f"{payment.amount:,.2f} received for {project_name}",
            entity_type="payment",
            entity_id=payment.id,
            action_url="/finances",
            created_by=user.id,
            exclude=user.id,
        )
    return payment


async def update_payment(db: AsyncSession, payment_id: uuid.UUID, changes: dict[str, Any]) -> Payment:
    payment = await payment_repository.update_payment(db, payment_id, **changes)
    if payment is None:
        raise NotFoundError("Payment not found", details={"payment_id": str(payment_id)})
    _record_payment(db, ChangeEvent.UPDATE, payment)
    return payment


async def soft_delete_payment(
    db: AsyncSession,
    user: User,
    payment_id: uuid.UUID,
    reason: str | None,
) -> Payment:
    payment = await payment_repository.soft_delete_payment(
        db, payment_id, deleted_by=user.id, reason=(reason or "").strip() or None
    )
    if payment is None:
        raise NotFoundError("Payment not found", details={"payment_id": str(payment_id)})
    _record_payment(db, ChangeEvent.UPDATE, payment)
    logger.info("Payment deleted", payment_id=str(payment_id), soft=True)
    return payment


async def restore_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
    payment = await payment_repository.restore_payment(db, payment_id)
    if payment is None:
        raise NotFoundError("Deleted payment not found", details={"payment_id": str(payment_id)})
    _record_payment(db, ChangeEvent.UPDATE, payment)
    return payment


async def delete_payment_permanently(db: AsyncSession, payment_id: uuid.UUID) -> None:
    if not await payment_repository.delete_payment(db, payment_id):
        raise NotFoundError("Payment not found", details={"payment_id": str(payment_id)})
    record_change(db, "payments", ChangeEvent.DELETE, payment_id)
    logger.info("Payment deleted", payment_id=str(payment_id), soft=False)


# ─── Costs ────────────────────────────────────

async def list_costs(db: AsyncSession, *, project_id: uuid.UUID | None = None) -> list[ProjectCost]:
    return await payment_repository.list_costs(db, project_id=project_id)


async def create_cost(db: AsyncSession, user: User, data: dict[str, Any]) -> ProjectCost:
    await _require_project(db, data["project_id"])
    cost = await payment_repository.create_cost(db, created_by=user.id, **data)
    record_change(db, "project_costs", ChangeEvent.INSERT, cost.id, project_id=cost.project_id)
    return cost


# ─── Recurring charges ────────────────────────

def _record_charge(db: AsyncSession, event: ChangeEvent, charge: RecurringCharge) -> None:
    record_change(db, "recurring_charges", event, charge.id, project_id=charge.project_id)


async def list_recurring(db: AsyncSession, *, project_id: uuid.UUID | None = None) -> list[RecurringCharge]:
    return await charge_repository.list_active(db, project_id=project_id)


async def list_cancelled_recurring(db: AsyncSession) -> list[RecurringCharge]:
    return await charge_repository.list_cancelled(db)


async def create_recurring(db: AsyncSession, user: User, data: dict[str, Any]) -> RecurringCharge:
    await _require_project(db, data["project_id"])
    if data.get("period") == ChargePeriod.CUSTOM and not data.get("custom_days"):
        raise DomainValidationError(
            "Custom period requires a positive number of days",
            details={"field": "custom_days"},
        )
    data = {**data}
    if not data.get("next_due_date"):
        data["next_due_date"] = data["start_date"]
    charge = await charge_repository.create_charge(db, created_by=user.id, **data)
    _record_charge(db, ChangeEvent.INSERT, charge)
    return charge


async def update_recurring(db: AsyncSession, charge_id: uuid.UUID, changes: dict[str, Any]) -> RecurringCharge:
    charge = await charge_repository.update_charge(db, charge_id, **changes)
    if charge is None:
        raise NotFoundError("Recurring charge not found", details={"charge_id": str(charge_id)})
    _record_charge(db, ChangeEvent.UPDATE, charge)
    return charge


async def cancel_recurring(
    db: AsyncSession,
    user: User,
    charge_id: uuid.UUID,
    reason: str | None,
) -> RecurringCharge:
    charge = await charge_repository.cancel_charge(
        db, charge_id, cancelled_by=user.id, reason=(reason or "").strip() or None
    )
    if charge is None:
        raise NotFoundError("Recurring charge not found", details={"charge_id": str(charge_id)})
    _record_charge(db, ChangeEvent.UPDATE, charge)
    return charge


async def restore_recurring(db: AsyncSession, charge_id: uuid.UUID) -> RecurringCharge:
    charge = await charge_repository.restore_charge(db, charge_id)
    if charge is None:
        raise NotFoundError("Cancelled charge not found", details={"charge_id": str(charge_id)})
    _record_charge(db, ChangeEvent.UPDATE, charge)
    return charge


async def delete_recurring_permanently(db: AsyncSession, charge_id: uuid.UUID) -> None:
    if not await charge_repository.delete_charge(db, charge_id):
        raise NotFoundError("Recurring charge not found", details={"charge_id": str(charge_id)})
    record_change(db, "recurring_charges", ChangeEvent.DELETE, charge_id)


async def pay_recurring(
    db: AsyncSession,
    user: User,
    charge_id: uuid.UUID,
    *,
    payment_date: date,
) -> tuple[Payment, RecurringCharge]:
    """Book one period of a recurring charge and move its due date forward."""
    charge = await charge_repository.get_charge(db, charge_id)
    if charge is None:
        raise NotFoundError("Recurring charge not found", details={"charge_id": str(charge_id)})

    next_due = advance_due_date(charge.next_due_date, charge.period, charge.custom_days)

    payment = await payment_repository.create_payment(
        db,
        created_by=user.id,
        project_id=charge.project_id,
        amount=charge.amount,
        payment_date=payment_date,
        status=PaymentStatus.PAID.value,
        type=charge.type,
        payment_method="recurring",
        reference=f"Recurring charge: {charge.description}",
    )
    charge = await charge_repository.update_charge(
        db,
        charge.id,
        last_payment_date=payment_date,
        next_due_date=next_due,
    )

    _record_payment(db, ChangeEvent.INSERT, payment)
    _record_charge(db, ChangeEvent.UPDATE, charge)
    logger.info(
        "Recurring charge paid",
        charge_id=str(charge.id),
        payment_id=str(payment.id),
        next_due_date=next_due.isoformat(),
    )
    return payment, charge


async def upcoming_recurring(db: AsyncSession, *, today: date | None = None) -> list[RecurringCharge]:
    """Live charges due within the next RECURRING_UPCOMING_DAYS (overdue included)."""
    today = today or utcnow().date()
    return await charge_repository.list_due_between(
        db, start=None, end=today + timedelta(days=settings.RECURRING_UPCOMING_DAYS)
    )


async def due_soon_recurring(db: AsyncSession, *, today: date | None = None) -> list[RecurringCharge]:
    """Live charges due between today and today + RECURRING_DUE_SOON_DAYS."""
    today = today or utcnow().date()
    return await charge_repository.list_due_between(
        db, start=today, end=today + timedelta(days=settings.RECURRING_DUE_SOON_DAYS)
    )


async def notify_due_soon(db: AsyncSession, *, today: date | None = None) -> int:
    """
    Notify admins and advisors about charges due soon.

    One notification per charge per recipient per day; returns the
    number created.
    """
    today = today or utcnow().date()
    charges = await due_soon_recurring(db, today=today)
    if not charges:
        return 0

    recipients = await user_repository.list_user_ids_by_roles(db, FINANCE_ROLES)
    day_start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    created = 0
    for charge in charges:
        if charge.type == PaymentType.EXPENSE:
            notification_type = NotificationType.RECURRING_EXPENSE_DUE_SOON
            title = "Recurring expense due soon"
        else:
            notification_type = NotificationType.RECURRING_CHARGE_DUE_SOON
            title = "Recurring charge due soon"

        pending = []
        for user_id in recipients:
            already = await notification_repository.exists_since(
                db,
                user_id=user_id,
                type=notification_type.value,
                entity_id=charge.id,
                since=day_start,
            )
            if not already:
                pending.append(user_id)

        project_name = charge.project.name if charge.project else "a project"
        notes = await notification_service.notify(
            db,
            pending,
            type=notification_type,
            title=title,
            message=(
                f'"{charge.description}" for {project_name} '
                f"({charge.amount:,.2f}) is due on {charge.next_due_date.isoformat()}"
            ),
            entity_type="recurring_charge",
            entity_id=charge.id,
            action_url="/finances",
        )
        created += len(notes)

    logger.info("Due-soon notifications sent", charges=len(charges), created=created)
    return created


# ─── Payment methods ──────────────────────────

async def list_payment_methods(db: AsyncSession) -> list[PaymentMethod]:
    return await method_repository.list_methods(db)


async def create_payment_method(db: AsyncSession, user: User, data: dict[str, Any]) -> PaymentMethod:
    name = (data.get("name") or "").strip()
    if not name:
        raise DomainValidationError("Name is required", details={"field": "name"})
    return await method_repository.create_method(
        db,
        name=name,
        description=data.get("description"),
        is_active=data.get("is_active", True),
        created_by=user.id,
    )


async def update_payment_method(db: AsyncSession, method_id: uuid.UUID, changes: dict[str, Any]) -> PaymentMethod:
    method = await method_repository.update_method(db, method_id, **changes)
    if method is None:
        raise NotFoundError("Payment method not found", details={"method_id": str(method_id)})
    return method


async def delete_payment_method(db: AsyncSession, method_id: uuid.UUID) -> None:
    if not await method_repository.delete_method(db, method_id):
        raise NotFoundError("Payment method not found", details={"method_id": str(method_id)})
