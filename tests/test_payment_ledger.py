import uuid
from datetime import date, datetime, timezone

import pytest

from shared.core.database import transaction
from shared.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from rental_service.app.crud.payments import payment_ledger
from rental_service.app.crud.payments.payment_ledger import LedgerConfig
from rental_service.app.enum.rental_enum import ContractStatus, FeeFrequency, PaymentStatus
from rental_service.app.models.payments import Payment

CONFIG = LedgerConfig()


def payments_of(db, contract):
    db.expire_all()
    return db.query(Payment).filter(Payment.contract_id == contract.id).order_by(Payment.due_date).all()


def first_payment(db, contract):
    with transaction(db):
        return payment_ledger.create_first_payment(db, contract)


def test_first_payment_weekly_thursday_start_is_next_monday(db, make_contract):
    contract = make_contract()

    payment = first_payment(db, contract)

    assert payment.due_date == date(2025, 1, 6)
    assert payment.status == PaymentStatus.PENDING.value
    assert payment.amount_cents == contract.fee_amount_cents


def test_first_payment_twice_fails(db, make_contract):
    contract = make_contract()
    first_payment(db, contract)

    with pytest.raises(ConflictError):
        first_payment(db, contract)

    assert len(payments_of(db, contract)) == 1


def test_first_payment_requires_anchor(db, make_contract):
    contract = make_contract(frequency=FeeFrequency.MONTHLY, due_weekday=None, due_day_of_month=None)

    with pytest.raises(InvalidInputError):
        first_payment(db, contract)

    assert payments_of(db, contract) == []


def test_settlement_twice_creates_one_next_payment(db, make_contract):
    contract = make_contract()
    payment = first_payment(db, contract)

    first = payment_ledger.apply_settlement(db, payment.id, CONFIG, reference="gw-1")
    second = payment_ledger.apply_settlement(db, payment.id, CONFIG, reference="gw-1")

    assert first.applied is True
    assert first.next_payment.due_date == date(2025, 1, 13)
    assert second.applied is False
    assert second.next_payment is None

    rows = payments_of(db, contract)
    assert [p.status for p in rows] == [PaymentStatus.PAID.value, PaymentStatus.PENDING.value]
    assert rows[0].settlement_reference == "gw-1"
    assert rows[0].paid_at is not None


def test_next_due_date_follows_schedule_not_settlement_day(db, make_contract):
    contract = make_contract()
    payment = first_payment(db, contract)

    late = datetime(2025, 1, 10, 16, 30, tzinfo=timezone.utc)  # a Friday
    result = payment_ledger.apply_settlement(db, payment.id, CONFIG, paid_at=late)

    assert result.next_payment.due_date == date(2025, 1, 13)


def test_monthly_end_of_month_scenario(db, make_contract):
    contract = make_contract(frequency=FeeFrequency.MONTHLY, due_weekday=None,
                             due_day_of_month=31, start_date=date(2025, 2, 10))
    payment = first_payment(db, contract)
    assert payment.due_date == date(2025, 2, 28)

    result = payment_ledger.apply_settlement(db, payment.id, CONFIG)

    assert result.next_payment.due_date == date(2025, 3, 28)


def test_settling_overdue_payment(db, make_contract):
    contract = make_contract()
    payment = first_payment(db, contract)
    payment_ledger.sweep_overdue(db, today=date(2025, 2, 1))

    result = payment_ledger.apply_settlement(db, payment.id, CONFIG)

    assert result.applied is True
    assert result.payment.status == PaymentStatus.PAID.value
    assert result.next_payment is not None


def test_no_next_payment_when_contract_paused(db, make_contract):
    contract = make_contract()
    payment = first_payment(db, contract)
    with transaction(db):
        contract.status = ContractStatus.PAUSED.value

    result = payment_ledger.apply_settlement(db, payment.id, CONFIG)

    assert result.applied is True
    assert result.next_payment is None
    assert len(payments_of(db, contract)) == 1


def test_no_next_payment_when_auto_generation_disabled(db, make_contract):
    contract = make_contract()
    payment = first_payment(db, contract)

    result = payment_ledger.apply_settlement(db, payment.id, LedgerConfig(auto_generate_next=False))

    assert result.next_payment is None
    assert len(payments_of(db, contract)) == 1


def test_no_payment_after_contract_end_date(db, make_contract):
    contract = make_contract(end_date=date(2025, 1, 10))
    payment = first_payment(db, contract)

    result = payment_ledger.apply_settlement(db, payment.id, CONFIG)

    assert result.next_payment is None


def test_settlement_for_unknown_payment(db):
    with pytest.raises(NotFoundError):
        payment_ledger.apply_settlement(db, uuid.uuid4(), CONFIG)


def test_settlement_does_not_duplicate_backfilled_payment(db, make_contract):
    contract = make_contract()
    payment = first_payment(db, contract)
    payment_ledger.backfill(db, 2, today=date(2025, 1, 6))

    result = payment_ledger.apply_settlement(db, payment.id, CONFIG)

    assert result.applied is True
    assert result.next_payment is None
    due_dates = [p.due_date for p in payments_of(db, contract)]
    assert due_dates == sorted(set(due_dates))


def test_insert_if_absent_skips_existing_due_date(db, make_contract):
    contract = make_contract()
    with transaction(db):
        created = payment_ledger.insert_payment_if_absent(db, contract, date(2025, 1, 6))
        duplicate = payment_ledger.insert_payment_if_absent(db, contract, date(2025, 1, 6))

    assert created is not None
    assert duplicate is None
    assert len(payments_of(db, contract)) == 1


def test_backfill_is_idempotent(db, make_contract):
    contract = make_contract()
    first_payment(db, contract)

    created = payment_ledger.backfill(db, 4, today=date(2025, 1, 6))
    again = payment_ledger.backfill(db, 4, today=date(2025, 1, 6))

    assert created == 4
    assert again == 0
    assert [p.due_date for p in payments_of(db, contract)] == [
        date(2025, 1, 6), date(2025, 1, 13), date(2025, 1, 20),
        date(2025, 1, 27), date(2025, 2, 3),
    ]


def test_backfill_skips_inactive_and_unstarted_contracts(db, make_contract):
    paused = make_contract(status=ContractStatus.PAUSED)
    first_payment(db, paused)
    no_payments = make_contract()

    created = payment_ledger.backfill(db, 4, today=date(2025, 1, 6))

    assert created == 0
    assert len(payments_of(db, paused)) == 1
    assert payments_of(db, no_payments) == []


def test_backfill_stops_at_end_date(db, make_contract):
    contract = make_contract(end_date=date(2025, 1, 20))
    first_payment(db, contract)

    created = payment_ledger.backfill(db, 4, today=date(2025, 1, 6))

    assert created == 2
    assert payments_of(db, contract)[-1].due_date == date(2025, 1, 20)


def test_sweep_overdue(db, make_contract):
    contract = make_contract(frequency=FeeFrequency.DAILY, due_weekday=None)
    first_payment(db, contract)                                   # due Jan 3
    payment_ledger.backfill(db, 3, today=date(2025, 1, 3))        # Jan 4, 5, 6
    paid = payments_of(db, contract)[1]
    payment_ledger.apply_settlement(db, paid.id, LedgerConfig(auto_generate_next=False))

    overdue_ids = payment_ledger.sweep_overdue(db, today=date(2025, 1, 5))

    statuses = {p.due_date: p.status for p in payments_of(db, contract)}
    assert statuses == {
        date(2025, 1, 3): PaymentStatus.OVERDUE.value,
        date(2025, 1, 4): PaymentStatus.PAID.value,
        date(2025, 1, 5): PaymentStatus.PENDING.value,   # due today is not late yet
        date(2025, 1, 6): PaymentStatus.PENDING.value,
    }
    assert len(overdue_ids) == 1
    assert payment_ledger.sweep_overdue(db, today=date(2025, 1, 5)) == []


def test_sweep_overdue_grace_period(db, make_contract):
    contract = make_contract()
    first_payment(db, contract)                                   # due Jan 6

    assert payment_ledger.sweep_overdue(db, today=date(2025, 1, 8), grace_period_days=3) == []
    assert len(payment_ledger.sweep_overdue(db, today=date(2025, 1, 10), grace_period_days=3)) == 1
