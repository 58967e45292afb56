"""
Maintenance jobs per vehicle.

    PLANNED / IN_PROGRESS -> COMPLETED | CANCELLED

Completing a job with an actual cost books a SERVICE cost for the vehicle
in the same transaction, at most once per job.
"""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.exceptions import InvalidStateError, NotFoundError
from ...enum.rental_enum import MaintenanceStatus, VehicleCostType
from ...models.vehicle_costs import VehicleCost
from ...models.vehicle_maintenance import VehicleMaintenance
from ...schemas.vehicle_maintenance_schemas import (
    MaintenanceCreate, MaintenanceListResponse, MaintenanceOut, MaintenanceRequest, MaintenanceUpdate
)
from .vehicles_crud import get_vehicle

logger = logging.getLogger(__name__)

OPEN_STATUSES = (MaintenanceStatus.PLANNED.value, MaintenanceStatus.IN_PROGRESS.value)


def to_out(job: VehicleMaintenance) -> MaintenanceOut:
    out = MaintenanceOut.model_validate(job)
    out.vehicle_reg = job.vehicle.reg if job.vehicle else None
    return out


def get_list(db: Session, vehicle_id: UUID, params: MaintenanceRequest) -> MaintenanceListResponse:
    get_vehicle(db, vehicle_id)

    q = db.query(VehicleMaintenance).filter(VehicleMaintenance.vehicle_id == vehicle_id)
    if params.status and params.status.lower() != "all":
        q = q.filter(VehicleMaintenance.status == params.status.upper())
    if params.search:
        q = q.filter(VehicleMaintenance.title.ilike(f"%{params.search}%"))

    total = q.with_entities(func.count(VehicleMaintenance.id)).scalar()
    rows = (
        q.order_by(VehicleMaintenance.scheduled_at.desc(), VehicleMaintenance.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return MaintenanceListResponse(maintenance=[to_out(row) for row in rows], total=total)


def create(db: Session, vehicle_id: UUID, payload: MaintenanceCreate) -> VehicleMaintenance:
    vehicle = get_vehicle(db, vehicle_id)

    job = VehicleMaintenance(
        vehicle_id=vehicle.id,
        **payload.model_dump(),
        status=MaintenanceStatus.PLANNED.value,
    )
    with transaction(db):
        db.add(job)
        db.flush()

    logger.info(f"Maintenance '{job.title}' planned for vehicle {vehicle.reg}")
    return job


def update(db: Session, vehicle_id: UUID, maintenance_id: UUID, payload: MaintenanceUpdate) -> VehicleMaintenance:
    data = payload.model_dump(exclude_unset=True)
    status = data.pop("status", None)

    with transaction(db):
        job = (
            db.query(VehicleMaintenance)
            .filter(
                VehicleMaintenance.id == maintenance_id,
                VehicleMaintenance.vehicle_id == vehicle_id,
            )
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not job:
            raise NotFoundError(f"Maintenance {maintenance_id} not found for vehicle {vehicle_id}")
        if job.status not in OPEN_STATUSES:
            raise InvalidStateError("maintenance", list(OPEN_STATUSES), job.status)

        for field, value in data.items():
            if value is None and field == "title":
                continue
            setattr(job, field, value)

        if status is not None:
            job.status = status.value

        if job.status == MaintenanceStatus.COMPLETED.value:
            job.completed_at = job.completed_at or date.today()
            if job.actual_cost_cents:
                db.add(VehicleCost(
                    vehicle_id=job.vehicle_id,
                    maintenance_id=job.id,
                    type=VehicleCostType.SERVICE.value,
                    title=job.title,
                    amount_cents=job.actual_cost_cents,
                    occurred_at=job.completed_at,
                    notes=f"Maintenance completed: {job.title}",
                ))
        db.flush()

    logger.info(f"Maintenance {job.id} is {job.status}")
    return job
