import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin, allow_cron_or_admin
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import UserToken
from ..crud.payments import payment_ledger
from ..crud.payments import payments_crud as crud
from ..crud.system import settings_crud
from ..crud.system.notifier import Notifier
from ..schemas.payments_schemas import (
    MarkPaidRequest, PaymentListResponse, PaymentOverview, PaymentRequest,
    SettlementOut, SettlementRequest
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/payments",
    tags=["payments"],
)


def _settle(db: Session, background_tasks: BackgroundTasks, payment_id: UUID,
            reference: Optional[str], paid_at=None) -> SettlementOut:
    config = settings_crud.get_ledger_config(db)
    result = payment_ledger.apply_settlement(
        db, payment_id, config, reference=reference, paid_at=paid_at)

    if result.applied:
        Notifier(db, background_tasks).payment_received(result.payment)

    return SettlementOut(
        payment=crud.to_out(result.payment),
        applied=result.applied,
        next_payment=crud.to_out(result.next_payment) if result.next_payment else None,
    )


@router.get("/all", response_model=PaymentListResponse)
def get_payments(
    params: PaymentRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_admin)
):
    return crud.get_list(db, params)


@router.get("/overview", response_model=PaymentOverview)
def get_payment_overview(
    params: PaymentRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_admin)
):
    return crud.get_overview(db, params)


@router.post("/{payment_id}/mark-paid", response_model=SettlementOut)
def mark_payment_paid(
    payment_id: UUID,
    background_tasks: BackgroundTasks,
    payload: MarkPaidRequest = MarkPaidRequest(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_admin)
):
    reference = payload.reference or f"manual:{current_user.user_id}"
    return _settle(db, background_tasks, payment_id, reference)


@router.post("/settlements", response_model=SettlementOut)
def receive_settlement(
    payload: SettlementRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    caller: Optional[UserToken] = Depends(allow_cron_or_admin)
):
    """Gateway webhook. Retries of the same event return applied=false."""
    logger.info(f"Settlement event for payment {payload.payment_id} ({payload.reference})")
    return _settle(db, background_tasks, payload.payment_id, payload.reference, payload.paid_at)
