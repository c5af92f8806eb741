"""
Finance endpoints — payments, costs, recurring charges, reports.

Everything here is restricted to admins and advisors except the
per-project finance view and the payment-method list, which any
signed-in user can read.
"""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, require_roles
from app.api.schemas.finance import (
    CostCreateRequest,
    CostResponse,
    FinanceReportsResponse,
    FinanceSummaryResponse,
    PaymentCreateRequest,
    PaymentMethodCreateRequest,
    PaymentMethodResponse,
    PaymentMethodUpdateRequest,
    PaymentResponse,
    PaymentUpdateRequest,
    PayRecurringRequest,
    PayRecurringResponse,
    ProjectFinancesResponse,
    ReasonRequest,
    RecurringChargeCreateRequest,
    RecurringChargeResponse,
    RecurringChargeUpdateRequest,
)
from app.core.constants import FINANCE_ROLES
from app.db.models.user import User
from app.services import finance as finance_service

router = APIRouter(prefix="/finance", tags=["Finance"])

finance_user = require_roles(*FINANCE_ROLES)


# ─── Overview ─────────────────────────────────

@router.get("/summary", response_model=FinanceSummaryResponse)
async def get_summary(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> FinanceSummaryResponse:
    summary = await finance_service.get_summary(db)
    return FinanceSummaryResponse.model_validate(summary, from_attributes=True)


@router.get("/reports", response_model=FinanceReportsResponse)
async def get_reports(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> FinanceReportsResponse:
    """Monthly revenue and costs; defaults to the previous and current calendar years."""
    reports = await finance_service.get_reports(db, start_date=start_date, end_date=end_date)
    return FinanceReportsResponse.model_validate(reports)


@router.get("/project/{project_id}", response_model=ProjectFinancesResponse)
async def get_project_finances(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> ProjectFinancesResponse:
    data = await finance_service.get_project_finances(db, project_id)
    return ProjectFinancesResponse.model_validate(data, from_attributes=True)


# ─── Payments ─────────────────────────────────

@router.get("/payments", response_model=list[PaymentResponse])
async def list_payments(
    project_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[PaymentResponse]:
    payments = await finance_service.list_payments(db, project_id=project_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/payments/deleted", response_model=list[PaymentResponse])
async def list_deleted_payments(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[PaymentResponse]:
    payments = await finance_service.list_deleted_payments(db)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.post("/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> PaymentResponse:
    payment = await finance_service.create_payment(db, current_user, payload.model_dump())
    return PaymentResponse.model_validate(payment)


@router.patch("/payments/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: uuid.UUID,
    payload: PaymentUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> PaymentResponse:
    payment = await finance_service.update_payment(
        db, payment_id, payload.model_dump(exclude_unset=True)
    )
    return PaymentResponse.model_validate(payment)


@router.post("/payments/{payment_id}/delete", response_model=PaymentResponse)
async def soft_delete_payment(
    payment_id: uuid.UUID,
    payload: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> PaymentResponse:
    """Move a payment to the deleted history, keeping the reason."""
    payment = await finance_service.soft_delete_payment(db, current_user, payment_id, payload.reason)
    return PaymentResponse.model_validate(payment)


@router.post("/payments/{payment_id}/restore", response_model=PaymentResponse)
async def restore_payment(
    payment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> PaymentResponse:
    return PaymentResponse.model_validate(await finance_service.restore_payment(db, payment_id))


@router.delete("/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> Response:
    await finance_service.delete_payment_permanently(db, payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Costs ────────────────────────────────────

@router.get("/costs", response_model=list[CostResponse])
async def list_costs(
    project_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[CostResponse]:
    costs = await finance_service.list_costs(db, project_id=project_id)
    return [CostResponse.model_validate(c) for c in costs]


@router.post("/costs", response_model=CostResponse, status_code=status.HTTP_201_CREATED)
async def create_cost(
    payload: CostCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> CostResponse:
    cost = await finance_service.create_cost(db, current_user, payload.model_dump())
    return CostResponse.model_validate(cost)


# ─── Recurring charges ────────────────────────

@router.get("/recurring", response_model=list[RecurringChargeResponse])
async def list_recurring(
    project_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[RecurringChargeResponse]:
    charges = await finance_service.list_recurring(db, project_id=project_id)
    return [RecurringChargeResponse.model_validate(c) for c in charges]


@router.get("/recurring/cancelled", response_model=list[RecurringChargeResponse])
async def list_cancelled_recurring(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[RecurringChargeResponse]:
    charges = await finance_service.list_cancelled_recurring(db)
    return [RecurringChargeResponse.model_validate(c) for c in charges]


@router.get("/recurring/upcoming", response_model=list[RecurringChargeResponse])
async def upcoming_recurring(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[RecurringChargeResponse]:
    charges = await finance_service.upcoming_recurring(db)
    return [RecurringChargeResponse.model_validate(c) for c in charges]


@router.get("/recurring/due-soon", response_model=list[RecurringChargeResponse])
async def due_soon_recurring(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> list[RecurringChargeResponse]:
    charges = await finance_service.due_soon_recurring(db)
    return [RecurringChargeResponse.model_validate(c) for c in charges]


@router.post(
    "/recurring",
    response_model=RecurringChargeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_recurring(
    payload: RecurringChargeCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> RecurringChargeResponse:
    charge = await finance_service.create_recurring(db, current_user, payload.model_dump())
    return RecurringChargeResponse.model_validate(charge)


@router.patch("/recurring/{charge_id}", response_model=RecurringChargeResponse)
async def update_recurring(
    charge_id: uuid.UUID,
    payload: RecurringChargeUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> RecurringChargeResponse:
    charge = await finance_service.update_recurring(
        db, charge_id, payload.model_dump(exclude_unset=True)
    )
    return RecurringChargeResponse.model_validate(charge)


@router.post("/recurring/{charge_id}/pay", response_model=PayRecurringResponse)
async def pay_recurring(
    charge_id: uuid.UUID,
    payload: PayRecurringRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> PayRecurringResponse:
    """Book one period of the charge as a paid payment and advance its due date."""
    payment, charge = await finance_service.pay_recurring(
        db, current_user, charge_id, payment_date=payload.payment_date
    )
    return PayRecurringResponse(
        payment=PaymentResponse.model_validate(payment),
        charge=RecurringChargeResponse.model_validate(charge),
    )


@router.post("/recurring/{charge_id}/cancel", response_model=RecurringChargeResponse)
async def cancel_recurring(
    charge_id: uuid.UUID,
    payload: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> RecurringChargeResponse:
    charge = await finance_service.cancel_recurring(db, current_user, charge_id, payload.reason)
    return RecurringChargeResponse.model_validate(charge)


@router.post("/recurring/{charge_id}/restore", response_model=RecurringChargeResponse)
async def restore_recurring(
    charge_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> RecurringChargeResponse:
    return RecurringChargeResponse.model_validate(
        await finance_service.restore_recurring(db, charge_id)
    )


@router.delete("/recurring/{charge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring(
    charge_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> Response:
    await finance_service.delete_recurring_permanently(db, charge_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Payment methods ──────────────────────────

@router.get("/payment-methods", response_model=list[PaymentMethodResponse])
async def list_payment_methods(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[PaymentMethodResponse]:
    methods = await finance_service.list_payment_methods(db)
    return [PaymentMethodResponse.model_validate(m) for m in methods]


@router.post(
    "/payment-methods",
    response_model=PaymentMethodResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment_method(
    payload: PaymentMethodCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(finance_user),
) -> PaymentMethodResponse:
    method = await finance_service.create_payment_method(db, current_user, payload.model_dump())
    return PaymentMethodResponse.model_validate(method)


@router.patch("/payment-methods/{method_id}", response_model=PaymentMethodResponse)
async def update_payment_method(
    method_id: uuid.UUID,
    payload: PaymentMethodUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> PaymentMethodResponse:
    method = await finance_service.update_payment_method(
        db, method_id, payload.model_dump(exclude_unset=True)
    )
    return PaymentMethodResponse.model_validate(method)


@router.delete("/payment-methods/{method_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment_method(
    method_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(finance_user),
) -> Response:
    await finance_service.delete_payment_method(db, method_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
