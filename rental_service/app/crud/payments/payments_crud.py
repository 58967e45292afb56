from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from shared.core.exceptions import NotFoundError
from ...enum.rental_enum import PaymentStatus
from ...models.drivers import Driver
from ...models.payments import Payment
from ...models.rental_contracts import RentalContract
from ...schemas.payments_schemas import (
    PaymentListResponse, PaymentOut, PaymentOverview, PaymentRequest
)
from ..system import settings_crud


def build_filters(params: PaymentRequest):
    filters = []

    if params.status and params.status.lower() != "all":
        filters.append(Payment.status == params.status.upper())

    if params.contract_id:
        filters.append(Payment.contract_id == params.contract_id)

    if params.driver_id:
        filters.append(RentalContract.driver_id == params.driver_id)

    if params.due_from:
        filters.append(Payment.due_date >= params.due_from)

    if params.due_to:
        filters.append(Payment.due_date <= params.due_to)

    if params.search:
        filters.append(Driver.full_name.ilike(f"%{params.search}%"))

    return filters


def _base_query(db: Session, params: PaymentRequest):
    return (
        db.query(Payment)
        .join(RentalContract, RentalContract.id == Payment.contract_id)
        .join(Driver, Driver.id == RentalContract.driver_id)
        .filter(*build_filters(params))
    )


def to_out(payment: Payment) -> PaymentOut:
    out = PaymentOut.model_validate(payment)
    contract = payment.contract
    if contract is not None:
        out.driver_name = contract.driver.full_name if contract.driver else None
        out.vehicle_reg = contract.vehicle.reg if contract.vehicle else None
    return out


def get_list(db: Session, params: PaymentRequest) -> PaymentListResponse:
    q = _base_query(db, params)

    total = q.with_entities(func.count(Payment.id)).scalar()
    rows = (
        q.options(joinedload(Payment.contract))
        .order_by(Payment.due_date.desc(), Payment.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return PaymentListResponse(payments=[to_out(row) for row in rows], total=total)


def get_overview(db: Session, params: PaymentRequest) -> PaymentOverview:
    rows = (
        _base_query(db, params)
        .with_entities(
            Payment.status,
            func.count(Payment.id),
            func.coalesce(func.sum(Payment.amount_cents), 0),
        )
        .group_by(Payment.status)
        .all()
    )
    totals = {status: (count, int(amount)) for status, count, amount in rows}

    def pick(status: PaymentStatus):
        return totals.get(status.value, (0, 0))

    return PaymentOverview(
        pending_count=pick(PaymentStatus.PENDING)[0],
        pending_cents=pick(PaymentStatus.PENDING)[1],
        overdue_count=pick(PaymentStatus.OVERDUE)[0],
        overdue_cents=pick(PaymentStatus.OVERDUE)[1],
        paid_count=pick(PaymentStatus.PAID)[0],
        paid_cents=pick(PaymentStatus.PAID)[1],
        currency=settings_crud.get_setting(db, settings_crud.CURRENCY, "ZAR"),
    )


def get_payment(db: Session, payment_id: UUID) -> Payment:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found")
    return payment


def get_driver_payments(db: Session, driver_id: UUID, params: PaymentRequest) -> PaymentListResponse:
    params = params.model_copy(update={"driver_id": driver_id})
    return get_list(db, params)
