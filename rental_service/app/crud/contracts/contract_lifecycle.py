"""
Rental contract state machine.

    DRAFT -> SENT_TO_DRIVER -> DRIVER_SIGNED -> ACTIVE -> PAUSED -> ACTIVE
                                                  |         |
                                                  +-> ENDED <+
    DRAFT / SENT_TO_DRIVER / DRIVER_SIGNED -> CANCELLED

Every transition runs in one transaction and locks the rows it reads its
precondition from. A failed precondition raises InvalidStateError naming the
expected and actual state; nothing is ever silently skipped. Notifications go
out only after the commit.
"""

import hashlib
import logging
from datetime import date, datetime, timezone
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import (
    ConflictError, ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
)
from shared.utils.money import format_cents
from ...enum.rental_enum import (
    ContractStatus, DriverVerificationStatus, FeeFrequency, VehicleStatus, WEEKDAY_NAMES
)
from ...models.drivers import Driver
from ...models.rental_contracts import RentalContract
from ...models.vehicles import Vehicle
from ...schemas.contracts_schemas import ContractCreate, ContractSignRequest, ContractUpdate
from ..payments.payment_ledger import create_first_payment, require_anchor
from ..system import settings_crud
from ..system.notifier import Notifier

logger = logging.getLogger(__name__)

CANCELLABLE = (
    ContractStatus.DRAFT,
    ContractStatus.SENT_TO_DRIVER,
    ContractStatus.DRIVER_SIGNED,
)

# columns an admin may clear while editing a draft
NULLABLE_EDIT_FIELDS = {"end_date", "terms_text", "due_weekday", "due_day_of_month"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_status(contract: RentalContract, *expected: ContractStatus):
    allowed = [status.value for status in expected]
    if contract.status not in allowed:
        raise InvalidStateError(
            "contract", allowed[0] if len(allowed) == 1 else allowed, contract.status)


def _lock_contract(db: Session, contract_id: UUID) -> RentalContract:
    contract = (
        db.query(RentalContract)
        .filter(RentalContract.id == contract_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not contract:
        raise NotFoundError(f"Contract {contract_id} not found")
    return contract


def _lock_vehicle(db: Session, vehicle_id: UUID) -> Vehicle:
    vehicle = (
        db.query(Vehicle)
        .filter(Vehicle.id == vehicle_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def _ensure_vehicle_free(db: Session, contract: RentalContract, vehicle: Vehicle):
    other = (
        db.query(RentalContract.id)
        .filter(
            RentalContract.vehicle_id == contract.vehicle_id,
            RentalContract.status == ContractStatus.ACTIVE.value,
            RentalContract.id != contract.id,
        )
        .first()
    )
    if other:
        raise ConflictError(
            f"Vehicle {vehicle.reg} already has an active contract ({other.id})")


def resolve_anchors(
    db: Session,
    frequency,
    due_weekday: Optional[int],
    due_day_of_month: Optional[int],
) -> Tuple[Optional[int], Optional[int]]:
    """Keep only the anchor the frequency uses, falling back to the configured default."""
    frequency = FeeFrequency(frequency)

    if frequency == FeeFrequency.WEEKLY:
        if due_weekday is None:
            due_weekday = settings_crud.get_setting_int(
                db, settings_crud.DEFAULT_DUE_WEEKDAY, None)
        if due_weekday is None:
            raise InvalidInputError(
                "Weekly contracts need a due weekday (0=Sunday .. 6=Saturday)")
        if not 0 <= due_weekday <= 6:
            raise InvalidInputError(f"Due weekday must be 0-6, got {due_weekday}")
        return due_weekday, None

    if frequency == FeeFrequency.MONTHLY:
        if due_day_of_month is None:
            due_day_of_month = settings_crud.get_setting_int(
                db, settings_crud.DEFAULT_DUE_DAY, None)
        if due_day_of_month is None:
            raise InvalidInputError("Monthly contracts need a due day of month (1-31)")
        if not 1 <= due_day_of_month <= 31:
            raise InvalidInputError(f"Due day of month must be 1-31, got {due_day_of_month}")
        return None, due_day_of_month

    return None, None


def default_terms(contract: RentalContract, vehicle: Vehicle) -> str:
    if contract.frequency == FeeFrequency.WEEKLY.value:
        cadence = f"weekly, due every {WEEKDAY_NAMES[contract.due_weekday]}"
    elif contract.frequency == FeeFrequency.MONTHLY.value:
        cadence = f"monthly, due on day {contract.due_day_of_month} of each month"
    else:
        cadence = "daily"
    return (
        f"The driver rents vehicle {vehicle.reg} from {contract.start_date.isoformat()} "
        f"for {format_cents(contract.fee_amount_cents)} payable {cadence}. "
        "Payments not received by the due date are marked overdue."
    )


def terms_hash(terms_text: Optional[str]) -> str:
    return hashlib.sha256((terms_text or "").encode("utf-8")).hexdigest()


def create_contract(db: Session, payload: ContractCreate) -> RentalContract:
    due_weekday, due_day_of_month = resolve_anchors(
        db, payload.frequency, payload.due_weekday, payload.due_day_of_month)

    with transaction(db):
        driver = db.get(Driver, payload.driver_id)
        if not driver:
            raise NotFoundError(f"Driver {payload.driver_id} not found")
        if driver.verification_status != DriverVerificationStatus.VERIFIED.value:
            raise InvalidStateError(
                "driver", DriverVerificationStatus.VERIFIED.value, driver.verification_status)

        vehicle = _lock_vehicle(db, payload.vehicle_id)
        if vehicle.status != VehicleStatus.AVAILABLE.value:
            raise InvalidStateError("vehicle", VehicleStatus.AVAILABLE.value, vehicle.status)

        contract = RentalContract(
            driver_id=driver.id,
            vehicle_id=vehicle.id,
            fee_amount_cents=payload.fee_amount_cents,
            frequency=payload.frequency.value,
            due_weekday=due_weekday,
            due_day_of_month=due_day_of_month,
            start_date=payload.start_date,
            end_date=payload.end_date,
            terms_text=payload.terms_text,
            status=ContractStatus.DRAFT.value,
        )
        db.add(contract)
        db.flush()

    logger.info(f"Contract {contract.id} created for driver {driver.id}, vehicle {vehicle.reg}")
    return contract


def update_draft(db: Session, contract_id: UUID, payload: ContractUpdate) -> RentalContract:
    data = payload.model_dump(exclude_unset=True)

    with transaction(db):
        contract = _lock_contract(db, contract_id)
        _require_status(contract, ContractStatus.DRAFT)

        for field, value in data.items():
            if value is None and field not in NULLABLE_EDIT_FIELDS:
                continue
            if isinstance(value, FeeFrequency):
                value = value.value
            setattr(contract, field, value)

        contract.due_weekday, contract.due_day_of_month = resolve_anchors(
            db, contract.frequency, contract.due_weekday, contract.due_day_of_month)
        if contract.end_date is not None and contract.end_date <= contract.start_date:
            raise InvalidInputError("end_date must be after start_date")
        db.flush()

    logger.info(f"Contract {contract.id} draft updated: {', '.join(sorted(data)) or 'no changes'}")
    return contract


def send_to_driver(db: Session, contract_id: UUID, notifier: Optional[Notifier] = None) -> RentalContract:
    """Locks the terms and reserves the vehicle for this contract."""
    with transaction(db):
        contract = _lock_contract(db, contract_id)
        _require_status(contract, ContractStatus.DRAFT)

        vehicle = _lock_vehicle(db, contract.vehicle_id)
        if vehicle.status != VehicleStatus.AVAILABLE.value:
            raise ConflictError(f"Vehicle {vehicle.reg} is {vehicle.status}, not AVAILABLE")

        if not contract.terms_text:
            contract.terms_text = default_terms(contract, vehicle)

        now = _now()
        contract.status = ContractStatus.SENT_TO_DRIVER.value
        contract.locked_at = now
        contract.sent_to_driver_at = now
        vehicle.status = VehicleStatus.ASSIGNED.value

    logger.info(f"Contract {contract.id} sent to driver {contract.driver_id}")
    if notifier:
        notifier.contract_sent(contract)
    return contract


def driver_sign(db: Session, contract_id: UUID, driver_id: UUID, payload: ContractSignRequest) -> RentalContract:
    if not (payload.accept_terms and payload.accept_payment_terms):
        raise InvalidInputError("Both the contract terms and the payment terms must be accepted")

    with transaction(db):
        contract = _lock_contract(db, contract_id)
        if contract.driver_id != driver_id:
            raise ForbiddenError("This contract belongs to another driver")
        _require_status(contract, ContractStatus.SENT_TO_DRIVER)

        contract.driver_signature_url = payload.signature_url
        contract.terms_hash = terms_hash(contract.terms_text)
        contract.driver_signed_at = _now()
        contract.status = ContractStatus.DRIVER_SIGNED.value

    logger.info(f"Contract {contract.id} signed by driver {driver_id}")
    return contract


def activate(db: Session, contract_id: UUID, notifier: Optional[Notifier] = None) -> RentalContract:
    """
    Countersign a driver-signed contract. The vehicle exclusivity check, the
    status change and the first payment commit together or not at all.
    """
    try:
        with transaction(db):
            contract = _lock_contract(db, contract_id)
            _require_status(contract, ContractStatus.DRIVER_SIGNED)
            require_anchor(contract)

            vehicle = _lock_vehicle(db, contract.vehicle_id)
            _ensure_vehicle_free(db, contract, vehicle)

            now = _now()
            contract.status = ContractStatus.ACTIVE.value
            contract.admin_signed_at = now
            contract.signed_document_path = f"contracts/{contract.id}/signed-contract.pdf"
            vehicle.status = VehicleStatus.ASSIGNED.value
            # a concurrent activation on the same vehicle fails here on the partial unique index
            db.flush()

            first_payment = create_first_payment(db, contract)
    except IntegrityError:
        raise ConflictError("Vehicle already has an active contract")

    logger.info(
        f"Contract {contract.id} activated, first payment due {first_payment.due_date}")
    if notifier:
        notifier.contract_activated(contract, first_payment)
    return contract


def cancel(db: Session, contract_id: UUID, reason: Optional[str] = None,
           notifier: Optional[Notifier] = None) -> RentalContract:
    with transaction(db):
        contract = _lock_contract(db, contract_id)
        _require_status(contract, *CANCELLABLE)

        if contract.status != ContractStatus.DRAFT.value:
            # sending reserved the vehicle for this contract
            vehicle = _lock_vehicle(db, contract.vehicle_id)
            if vehicle.status == VehicleStatus.ASSIGNED.value:
                vehicle.status = VehicleStatus.AVAILABLE.value

        contract.status = ContractStatus.CANCELLED.value
        contract.cancellation_reason = reason
        today = date.today()
        # a contract that never started keeps its dates; end_date must stay after start_date
        if contract.start_date < today:
            contract.end_date = today

    logger.info(f"Contract {contract.id} cancelled")
    if notifier:
        notifier.contract_cancelled(contract)
    return contract


def pause(db: Session, contract_id: UUID) -> RentalContract:
    with transaction(db):
        contract = _lock_contract(db, contract_id)
        _require_status(contract, ContractStatus.ACTIVE)
        contract.status = ContractStatus.PAUSED.value

    logger.info(f"Contract {contract.id} paused")
    return contract


def resume(db: Session, contract_id: UUID) -> RentalContract:
    try:
        with transaction(db):
            contract = _lock_contract(db, contract_id)
            _require_status(contract, ContractStatus.PAUSED)

            vehicle = _lock_vehicle(db, contract.vehicle_id)
            _ensure_vehicle_free(db, contract, vehicle)
            contract.status = ContractStatus.ACTIVE.value
            db.flush()
    except IntegrityError:
        raise ConflictError("Vehicle already has an active contract")

    logger.info(f"Contract {contract.id} resumed")
    return contract


def end(db: Session, contract_id: UUID, end_date: Optional[date] = None) -> RentalContract:
    with transaction(db):
        contract = _lock_contract(db, contract_id)
        _require_status(contract, ContractStatus.ACTIVE, ContractStatus.PAUSED)

        vehicle = _lock_vehicle(db, contract.vehicle_id)
        contract.status = ContractStatus.ENDED.value
        contract.end_date = end_date or date.today()
        vehicle.status = VehicleStatus.AVAILABLE.value

    logger.info(f"Contract {contract.id} ended on {contract.end_date}")
    return contract
