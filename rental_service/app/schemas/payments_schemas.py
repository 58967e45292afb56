from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from ..enum.rental_enum import PaymentStatus


class PaymentOut(BaseModel):
    id: UUID
    contract_id: UUID
    amount_cents: int
    due_date: date
    status: PaymentStatus
    paid_at: Optional[datetime] = None
    settlement_reference: Optional[str] = None
    created_at: Optional[datetime] = None

    driver_name: Optional[str] = None
    vehicle_reg: Optional[str] = None

    model_config = {"from_attributes": True}


class PaymentRequest(CommonQueryParams):
    status: Optional[str] = None       # "all" | "PENDING" | "PAID" | "OVERDUE"
    contract_id: Optional[UUID] = None
    driver_id: Optional[UUID] = None
    due_from: Optional[date] = None
    due_to: Optional[date] = None


class PaymentListResponse(BaseModel):
    payments: List[PaymentOut]
    total: int


class PaymentOverview(BaseModel):
    pending_count: int
    pending_cents: int
    overdue_count: int
    overdue_cents: int
    paid_count: int
    paid_cents: int
    currency: str


class MarkPaidRequest(BaseModel):
    reference: Optional[str] = Field(None, max_length=128)


class SettlementRequest(BaseModel):
    """Settlement event as delivered by the payment gateway (at least once)."""
    payment_id: UUID
    reference: Optional[str] = Field(None, max_length=128)
    paid_at: Optional[datetime] = None


class SettlementOut(BaseModel):
    payment: PaymentOut
    applied: bool
    next_payment: Optional[PaymentOut] = None


class BackfillResult(BaseModel):
    created: int
    look_ahead_cycles: int


class OverdueSweepResult(BaseModel):
    updated: int
    payment_ids: List[UUID]
