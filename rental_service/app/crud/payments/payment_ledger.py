"""
Payment obligations for rental contracts.

Every write goes through ``insert_payment_if_absent``, a single
``INSERT ... ON CONFLICT DO NOTHING`` keyed on (contract_id, due_date), so a
retried webhook, a double click on "mark paid" and a concurrent backfill can
all race without ever producing two payments for the same due date.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from ...enum.rental_enum import ContractStatus, FeeFrequency, PaymentStatus
from ...models.payments import Payment
from ...models.rental_contracts import RentalContract
from .due_date_calculator import due_dates_between, horizon, next_due_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerConfig:
    auto_generate_next: bool = True
    grace_period_days: int = 0
    backfill_cycles: int = 4


@dataclass
class SettlementResult:
    payment: Payment
    applied: bool  # False when the payment had already been settled
    next_payment: Optional[Payment] = None


def require_anchor(contract: RentalContract) -> None:
    if contract.frequency == FeeFrequency.WEEKLY.value and contract.due_weekday is None:
        raise InvalidInputError(
            "Weekly contracts need a due weekday before payments can be generated")
    if contract.frequency == FeeFrequency.MONTHLY.value and contract.due_day_of_month is None:
        raise InvalidInputError(
            "Monthly contracts need a due day of month before payments can be generated")


def next_due_for(contract: RentalContract, from_date: date) -> date:
    return next_due_date(
        contract.frequency,
        from_date,
        due_weekday=contract.due_weekday,
        due_day_of_month=contract.due_day_of_month,
    )


def _ends_before(contract: RentalContract, due_date: date) -> bool:
    return contract.end_date is not None and due_date > contract.end_date


def insert_payment_if_absent(db: Session, contract: RentalContract, due_date: date) -> Optional[Payment]:
    """Create a PENDING payment unless one already exists for this due date."""
    table = Payment.__table__
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table)
    else:
        raise NotImplementedError(f"Conditional insert not supported on {dialect}")

    payment_id = uuid.uuid4()
    stmt = stmt.values(
        id=payment_id,
        contract_id=contract.id,
        amount_cents=contract.fee_amount_cents,
        due_date=due_date,
        status=PaymentStatus.PENDING.value,
    ).on_conflict_do_nothing(index_elements=[table.c.contract_id, table.c.due_date])

    result = db.execute(stmt)
    if result.rowcount == 0:
        logger.info(
            f"Payment for contract {contract.id} due {due_date} already exists, skipped")
        return None

    logger.info(f"Payment {payment_id} created for contract {contract.id} due {due_date}")
    return db.get(Payment, payment_id)


def create_first_payment(db: Session, contract: RentalContract) -> Payment:
    """
    First obligation of a contract, due on the first cycle date after its start.
    Runs inside the caller's transaction (contract activation).
    """
    require_anchor(contract)

    existing = (
        db.query(func.count(Payment.id))
        .filter(Payment.contract_id == contract.id)
        .scalar()
    )
    if existing:
        raise ConflictError(
            f"Contract {contract.id} already has {existing} payment(s); first payment not created")

    due_date = next_due_for(contract, contract.start_date)
    if _ends_before(contract, due_date):
        raise InvalidInputError(
            f"Contract ends on {contract.end_date}, before its first due date {due_date}")

    payment = insert_payment_if_absent(db, contract, due_date)
    if payment is None:
        raise ConflictError(
            f"Contract {contract.id} already has a payment due {due_date}")
    return payment


def apply_settlement(
    db: Session,
    payment_id: UUID,
    config: LedgerConfig,
    reference: Optional[str] = None,
    paid_at: Optional[datetime] = None,
) -> SettlementResult:
    """
    Mark a payment PAID and queue the next one.

    Safe to call any number of times for the same payment: after the first
    call the payment is PAID and further calls change nothing. The next due
    date follows the schedule (the paid payment's due date), not the day the
    money arrived.
    """
    with transaction(db):
        payment = (
            db.query(Payment)
            .filter(Payment.id == payment_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")

        if payment.status == PaymentStatus.PAID.value:
            logger.info(f"Payment {payment.id} already paid, settlement ignored")
            return SettlementResult(payment=payment, applied=False)

        payment.status = PaymentStatus.PAID.value
        payment.paid_at = paid_at or datetime.now(timezone.utc)
        if reference:
            payment.settlement_reference = reference
        db.flush()

        contract = payment.contract
        next_payment = None
        if not config.auto_generate_next:
            logger.info(f"Auto-generation disabled, no payment queued after {payment.id}")
        elif contract.status != ContractStatus.ACTIVE.value:
            logger.info(
                f"Contract {contract.id} is {contract.status}, no payment queued after {payment.id}")
        else:
            due_date = next_due_for(contract, payment.due_date)
            if _ends_before(contract, due_date):
                logger.info(f"Contract {contract.id} ends before {due_date}, schedule complete")
            else:
                next_payment = insert_payment_if_absent(db, contract, due_date)

        result = SettlementResult(payment=payment, applied=True, next_payment=next_payment)

    logger.info(f"Payment {payment.id} settled")
    return result


def backfill(db: Session, look_ahead_cycles: int, today: Optional[date] = None) -> int:
    """
    Queue upcoming payments for every ACTIVE contract up to the look-ahead
    horizon. Each contract is its own unit of work. Returns the number of
    payments created; a second run with nothing settled in between returns 0.
    """
    today = today or date.today()
    contract_ids = [
        contract_id for (contract_id,) in db.query(RentalContract.id)
        .filter(RentalContract.status == ContractStatus.ACTIVE.value)
        .all()
    ]

    created = 0
    for contract_id in contract_ids:
        with transaction(db):
            contract = (
                db.query(RentalContract)
                .filter(RentalContract.id == contract_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if not contract or contract.status != ContractStatus.ACTIVE.value:
                continue

            latest_due = (
                db.query(func.max(Payment.due_date))
                .filter(Payment.contract_id == contract.id)
                .scalar()
            )
            if latest_due is None:
                logger.warning(f"Active contract {contract.id} has no payments, skipped")
                continue

            until = horizon(
                contract.frequency,
                today,
                look_ahead_cycles,
                due_weekday=contract.due_weekday,
                due_day_of_month=contract.due_day_of_month,
            )
            if contract.end_date is not None:
                until = min(until, contract.end_date)

            for due_date in due_dates_between(
                contract.frequency,
                latest_due,
                until,
                due_weekday=contract.due_weekday,
                due_day_of_month=contract.due_day_of_month,
            ):
                if insert_payment_if_absent(db, contract, due_date) is not None:
                    created += 1

    logger.info(f"Backfill created {created} payment(s) for {len(contract_ids)} active contract(s)")
    return created


def sweep_overdue(db: Session, today: Optional[date] = None, grace_period_days: int = 0) -> List[UUID]:
    """PENDING payments due before ``today - grace`` become OVERDUE. Returns their ids."""
    today = today or date.today()
    cutoff = today - timedelta(days=grace_period_days)

    with transaction(db):
        overdue_ids = [
            payment_id for (payment_id,) in db.query(Payment.id)
            .filter(
                Payment.status == PaymentStatus.PENDING.value,
                Payment.due_date < cutoff,
            )
            .with_for_update()
            .populate_existing()
            .all()
        ]
        if overdue_ids:
            (
                db.query(Payment)
                .filter(
                    Payment.id.in_(overdue_ids),
                    Payment.status == PaymentStatus.PENDING.value,
                )
                .update({"status": PaymentStatus.OVERDUE.value}, synchronize_session="fetch")
            )

    logger.info(f"Marked {len(overdue_ids)} payment(s) overdue (cutoff {cutoff})")
    return overdue_ids
