import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models.payments import Payment
from ...schemas.payments_schemas import BackfillResult, OverdueSweepResult
from ..payments import payment_ledger
from ..system import settings_crud
from ..system.notifier import Notifier

logger = logging.getLogger(__name__)


def generate_upcoming_payments(db: Session, today: Optional[date] = None) -> BackfillResult:
    config = settings_crud.get_ledger_config(db)
    created = payment_ledger.backfill(db, config.backfill_cycles, today=today)
    return BackfillResult(created=created, look_ahead_cycles=config.backfill_cycles)


def mark_overdue_payments(
    db: Session,
    today: Optional[date] = None,
    notifier: Optional[Notifier] = None,
) -> OverdueSweepResult:
    config = settings_crud.get_ledger_config(db)
    payment_ids = payment_ledger.sweep_overdue(
        db, today=today, grace_period_days=config.grace_period_days)

    if notifier and payment_ids:
        payments = (
            db.query(Payment)
            .options(joinedload(Payment.contract))
            .filter(Payment.id.in_(payment_ids))
            .all()
        )
        for payment in payments:
            notifier.payment_overdue(payment)
        logger.info(f"Overdue notifications queued for {len(payments)} payment(s)")

    return OverdueSweepResult(updated=len(payment_ids), payment_ids=payment_ids)
