import logging
from datetime import date
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.database import transaction
from ...models.vehicle_costs import VehicleCost
from ...schemas.vehicle_costs_schemas import (
    VehicleCostCreate, VehicleCostListResponse, VehicleCostOut, VehicleCostRequest
)
from .vehicles_crud import get_vehicle

logger = logging.getLogger(__name__)


def build_filters(vehicle_id: UUID, params: VehicleCostRequest):
    filters = [VehicleCost.vehicle_id == vehicle_id]

    if params.type and params.type.lower() != "all":
        filters.append(VehicleCost.type == params.type.upper())

    if params.occurred_from:
        filters.append(VehicleCost.occurred_at >= params.occurred_from)

    if params.occurred_to:
        filters.append(VehicleCost.occurred_at <= params.occurred_to)

    if params.search:
        like = f"%{params.search}%"
        filters.append(VehicleCost.title.ilike(like) | VehicleCost.vendor.ilike(like))

    return filters


def get_list(db: Session, vehicle_id: UUID, params: VehicleCostRequest) -> VehicleCostListResponse:
    get_vehicle(db, vehicle_id)

    q = db.query(VehicleCost).filter(*build_filters(vehicle_id, params))
    total, total_cents = q.with_entities(
        func.count(VehicleCost.id),
        func.coalesce(func.sum(VehicleCost.amount_cents), 0),
    ).one()

    rows = (
        q.order_by(VehicleCost.occurred_at.desc(), VehicleCost.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return VehicleCostListResponse(
        costs=[VehicleCostOut.model_validate(row) for row in rows],
        total=total,
        total_cents=int(total_cents),
    )


def create(db: Session, vehicle_id: UUID, payload: VehicleCostCreate) -> VehicleCost:
    vehicle = get_vehicle(db, vehicle_id)

    data = payload.model_dump()
    data["type"] = payload.type.value
    data["occurred_at"] = payload.occurred_at or date.today()

    cost = VehicleCost(vehicle_id=vehicle.id, **data)
    with transaction(db):
        db.add(cost)
        db.flush()

    logger.info(f"{cost.type} cost of {cost.amount_cents} cents booked for vehicle {vehicle.reg}")
    return cost
