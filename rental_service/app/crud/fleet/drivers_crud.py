import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from shared.core.schemas import UserToken
from ...enum.rental_enum import DriverVerificationStatus
from ...models.drivers import Driver
from ...schemas.drivers_schemas import (
    DriverCreate, DriverListResponse, DriverOut, DriverProfileUpdate, DriverRequest,
    DriverVerificationUpdate
)

logger = logging.getLogger(__name__)


def build_filters(params: DriverRequest):
    filters = []

    if params.verification_status and params.verification_status.lower() != "all":
        filters.append(Driver.verification_status == params.verification_status.upper())

    if params.search:
        like = f"%{params.search}%"
        filters.append(
            or_(
                Driver.full_name.ilike(like),
                Driver.email.ilike(like),
                Driver.phone.ilike(like),
            )
        )

    return filters


def get_list(db: Session, params: DriverRequest) -> DriverListResponse:
    q = db.query(Driver).filter(*build_filters(params))

    total = q.with_entities(func.count(Driver.id)).scalar()
    rows = (
        q.order_by(Driver.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return DriverListResponse(
        drivers=[DriverOut.model_validate(row) for row in rows],
        total=total,
    )


def get_driver(db: Session, driver_id: UUID) -> Driver:
    driver = db.get(Driver, driver_id)
    if not driver:
        raise NotFoundError(f"Driver {driver_id} not found")
    return driver


def get_by_user_id(db: Session, user_id) -> Optional[Driver]:
    return db.query(Driver).filter(Driver.user_id == user_id).first()


def create(db: Session, payload: DriverCreate) -> Driver:
    driver = Driver(
        **payload.model_dump(),
        # drivers register with documents first, review happens afterwards
        verification_status=DriverVerificationStatus.PENDING_REVIEW.value,
    )
    try:
        with transaction(db):
            db.add(driver)
            db.flush()
    except IntegrityError:
        raise ConflictError("A driver is already linked to this user account")

    logger.info(f"Driver {driver.id} created")
    return driver


def finalize_verification(db: Session, driver_id: UUID, payload: DriverVerificationUpdate) -> Driver:
    with transaction(db):
        driver = (
            db.query(Driver)
            .filter(Driver.id == driver_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not driver:
            raise NotFoundError(f"Driver {driver_id} not found")
        if driver.verification_status == DriverVerificationStatus.VERIFIED.value:
            raise InvalidStateError(
                "driver",
                [DriverVerificationStatus.UNVERIFIED.value,
                 DriverVerificationStatus.PENDING_REVIEW.value,
                 DriverVerificationStatus.REJECTED.value],
                driver.verification_status,
            )

        driver.verification_status = payload.status.value
        driver.verification_note = payload.note
        driver.verified_at = (
            datetime.now(timezone.utc)
            if payload.status == DriverVerificationStatus.VERIFIED else None
        )

    logger.info(f"Driver {driver.id} verification set to {driver.verification_status}")
    return driver


def update_profile(db: Session, driver_id: UUID, payload: DriverProfileUpdate) -> Driver:
    data = payload.model_dump(exclude_unset=True)

    with transaction(db):
        driver = (
            db.query(Driver)
            .filter(Driver.id == driver_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not driver:
            raise NotFoundError(f"Driver {driver_id} not found")

        for field, value in data.items():
            # name is required; a blank one leaves the stored name alone
            if field == "full_name" and value is None:
                continue
            setattr(driver, field, value)

    logger.info(f"Driver {driver.id} updated profile: {', '.join(sorted(data)) or 'no changes'}")
    return driver


def get_current_driver(db: Session, current_user: UserToken) -> Driver:
    """Driver record behind a driver token: the driver_id claim, else the linked user account."""
    if current_user.driver_id:
        return get_driver(db, current_user.driver_id)
    try:
        user_id = UUID(str(current_user.user_id))
    except ValueError:
        raise NotFoundError("No driver profile for this account")
    driver = get_by_user_id(db, user_id)
    if not driver:
        raise NotFoundError("No driver profile for this account")
    return driver
