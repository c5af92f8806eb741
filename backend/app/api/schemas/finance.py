"""
Finance schemas.

Summary and report payloads use camelCase keys on the wire
(`totalRevenue`, `paymentsByMonth`, ...) through serialization aliases.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, computed_field

from app.api.schemas.common import ProjectBrief
from app.core.constants import ChargePeriod, PaymentStatus, PaymentType


# ─── Payments ─────────────────────────────────

class PaymentCreateRequest(BaseModel):
    project_id: uuid.UUID
    amount: float = Field(..., gt=0)
    hosting_cost: float = Field(0, ge=0)
    domain_cost: float = Field(0, ge=0)
    other_cost: float = Field(0, ge=0)
    other_cost_description: str | None = None
    payment_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    type: PaymentType = PaymentType.INCOME
    payment_method: str | None = None
    reference: str | None = None
    notes: str | None = None


class PaymentUpdateRequest(BaseModel):
    amount: float | None = Field(None, gt=0)
    hosting_cost: float | None = Field(None, ge=0)
    domain_cost: float | None = Field(None, ge=0)
    other_cost: float | None = Field(None, ge=0)
    other_cost_description: str | None = None
    payment_date: date | None = None
    status: PaymentStatus | None = None
    type: PaymentType | None = None
    payment_method: str | None = None
    reference: str | None = None
    notes: str | None = None


class PaymentResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    project_id: uuid.UUID
    project: ProjectBrief | None = None
    amount: float
    hosting_cost: float
    domain_cost: float
    other_cost: float
    other_cost_description: str | None = None
    payment_date: date
    status: PaymentStatus
    type: PaymentType
    payment_method: str | None = None
    reference: str | None = None
    notes: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    deleted_by: uuid.UUID | None = None
    deleted_reason: str | None = None

    @computed_field
    @property
    def net_amount(self) -> float:
        return round(self.amount - self.hosting_cost - self.domain_cost - self.other_cost, 2)


class ReasonRequest(BaseModel):
    reason: str | None = Field(None, max_length=2000)


# ─── Costs ────────────────────────────────────

class CostCreateRequest(BaseModel):
    project_id: uuid.UUID
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    category: str | None = None
    cost_date: date
    is_recurring: bool = False


class CostResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    project_id: uuid.UUID
    description: str
    amount: float
    category: str | None = None
    cost_date: date
    is_recurring: bool
    created_by: uuid.UUID | None = None
    created_at: datetime


# ─── Recurring charges ────────────────────────

class RecurringChargeCreateRequest(BaseModel):
    project_id: uuid.UUID
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    period: ChargePeriod = ChargePeriod.MONTHLY
    custom_days: int | None = Field(None, gt=0)
    start_date: date
    next_due_date: date | None = None
    is_active: bool = True
    type: PaymentType = PaymentType.INCOME


class RecurringChargeUpdateRequest(BaseModel):
    description: str | None = Field(None, min_length=1)
    amount: float | None = Field(None, gt=0)
    period: ChargePeriod | None = None
    custom_days: int | None = Field(None, gt=0)
    next_due_date: date | None = None
    is_active: bool | None = None
    type: PaymentType | None = None


class RecurringChargeResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    project_id: uuid.UUID
    project: ProjectBrief | None = None
    description: str
    amount: float
    period: ChargePeriod
    custom_days: int | None = None
    start_date: date
    next_due_date: date
    last_payment_date: date | None = None
    is_active: bool
    type: PaymentType
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    cancelled_by: uuid.UUID | None = None
    cancelled_reason: str | None = None


class PayRecurringRequest(BaseModel):
    payment_date: date


class PayRecurringResponse(BaseModel):
    payment: PaymentResponse
    charge: RecurringChargeResponse


# ─── Payment methods ──────────────────────────

class PaymentMethodCreateRequest(BaseModel):
    name: str = Field(..., max_length=100)
    description: str | None = None
    is_active: bool = True


class PaymentMethodUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    is_active: bool | None = None


class PaymentMethodResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    description: str | None = None
    is_active: bool
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime


# ─── Summaries ────────────────────────────────

class FinanceSummaryResponse(BaseModel):
    total_revenue: float = Field(serialization_alias="totalRevenue")
    total_pending: float = Field(serialization_alias="totalPending")
    total_overdue: float = Field(serialization_alias="totalOverdue")
    total_costs: float = Field(serialization_alias="totalCosts")
    net_profit: float = Field(serialization_alias="netProfit")
    active_projects: int = Field(serialization_alias="activeProjects")
    next_recurring: RecurringChargeResponse | None = Field(None, serialization_alias="nextRecurring")


class ProjectFinanceRow(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    project_id: uuid.UUID
    total_value: float
    currency: str


class ProjectFinanceSummary(BaseModel):
    total_paid: float = Field(serialization_alias="totalPaid")
    total_pending: float = Field(serialization_alias="totalPending")
    total_costs: float = Field(serialization_alias="totalCosts")
    profit: float
    contract_value: float = Field(serialization_alias="contractValue")
    remaining: float


class ProjectFinancesResponse(BaseModel):
    finance: ProjectFinanceRow | None = None
    payments: list[PaymentResponse]
    costs: list[CostResponse]
    recurring_charges: list[RecurringChargeResponse]
    summary: ProjectFinanceSummary


class RevenueByProject(BaseModel):
    project_id: uuid.UUID
    project_name: str | None = None
    revenue: float


class FinanceReportsResponse(BaseModel):
    start_date: date
    end_date: date
    payments_by_month: dict[str, float] = Field(serialization_alias="paymentsByMonth")
    costs_by_month: dict[str, float] = Field(serialization_alias="costsByMonth")
    costs_by_category: dict[str, float] = Field(serialization_alias="costsByCategory")
    revenue_by_project: list[RevenueByProject] = Field(serialization_alias="revenueByProject")
