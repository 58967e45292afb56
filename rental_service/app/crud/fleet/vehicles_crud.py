import logging
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from ...enum.rental_enum import VehicleStatus
from ...models.vehicles import Vehicle
from ...schemas.vehicles_schemas import (
    VehicleCreate, VehicleListResponse, VehicleOut, VehicleRequest, VehicleStatusUpdate
)

logger = logging.getLogger(__name__)


def normalize_reg(reg: str) -> str:
    return "".join(reg.split()).upper()


def build_filters(params: VehicleRequest):
    filters = []

    if params.status and params.status.lower() != "all":
        filters.append(Vehicle.status == params.status.upper())

    if params.search:
        like = f"%{params.search}%"
        filters.append(
            or_(
                Vehicle.reg.ilike(like),
                Vehicle.make.ilike(like),
                Vehicle.model.ilike(like),
            )
        )

    return filters


def get_list(db: Session, params: VehicleRequest) -> VehicleListResponse:
    q = db.query(Vehicle).filter(*build_filters(params))

    total = q.with_entities(func.count(Vehicle.id)).scalar()
    rows = q.order_by(Vehicle.reg).offset(params.skip).limit(params.limit).all()
    return VehicleListResponse(
        vehicles=[VehicleOut.model_validate(row) for row in rows],
        total=total,
    )


def get_vehicle(db: Session, vehicle_id: UUID) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def create(db: Session, payload: VehicleCreate) -> Vehicle:
    data = payload.model_dump()
    data["reg"] = normalize_reg(data["reg"])

    if db.query(Vehicle.id).filter(Vehicle.reg == data["reg"]).first():
        raise ConflictError(f"Vehicle with registration {data['reg']} already exists")

    vehicle = Vehicle(**data, status=VehicleStatus.AVAILABLE.value)
    try:
        with transaction(db):
            db.add(vehicle)
            db.flush()
    except IntegrityError:
        raise ConflictError(f"Vehicle with registration {data['reg']} already exists")

    logger.info(f"Vehicle {vehicle.reg} created")
    return vehicle


def update_status(db: Session, vehicle_id: UUID, payload: VehicleStatusUpdate) -> Vehicle:
    """Manual fleet status. ASSIGNED belongs to the contract lifecycle and cannot be set or cleared here."""
    if payload.status == VehicleStatus.ASSIGNED:
        raise InvalidInputError("Vehicles are assigned by sending a contract, not directly")

    with transaction(db):
        vehicle = (
            db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        if vehicle.status == VehicleStatus.ASSIGNED.value:
            raise ConflictError(
                f"Vehicle {vehicle.reg} is assigned to a contract; end or cancel it first")
        vehicle.status = payload.status.value

    logger.info(f"Vehicle {vehicle.reg} status set to {vehicle.status}")
    return vehicle
