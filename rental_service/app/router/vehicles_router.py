from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin
from shared.core.database import get_rental_db as get_db
from ..crud.fleet import vehicle_costs_crud, vehicle_maintenance_crud
from ..crud.fleet import vehicles_crud as crud
from ..schemas.vehicle_costs_schemas import (
    VehicleCostCreate, VehicleCostListResponse, VehicleCostOut, VehicleCostRequest
)
from ..schemas.vehicle_maintenance_schemas import (
    MaintenanceCreate, MaintenanceListResponse, MaintenanceOut, MaintenanceRequest, MaintenanceUpdate
)
from ..schemas.vehicles_schemas import (
    VehicleCreate, VehicleListResponse, VehicleOut, VehicleRequest, VehicleStatusUpdate
)

router = APIRouter(
    prefix="/api/vehicles",
    tags=["vehicles"],
    dependencies=[Depends(allow_admin)]
)


@router.get("/all", response_model=VehicleListResponse)
def get_vehicles(
    params: VehicleRequest = Depends(),
    db: Session = Depends(get_db),
):
    return crud.get_list(db, params)


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: UUID, db: Session = Depends(get_db)):
    return crud.get_vehicle(db, vehicle_id)


@router.post("/", response_model=VehicleOut)
def create_vehicle(payload: VehicleCreate, db: Session = Depends(get_db)):
    return crud.create(db, payload)


@router.put("/{vehicle_id}/status", response_model=VehicleOut)
def update_vehicle_status(
    vehicle_id: UUID,
    payload: VehicleStatusUpdate,
    db: Session = Depends(get_db),
):
    return crud.update_status(db, vehicle_id, payload)


# ---------------- Maintenance ----------------

@router.get("/{vehicle_id}/maintenance", response_model=MaintenanceListResponse)
def get_vehicle_maintenance(
    vehicle_id: UUID,
    params: MaintenanceRequest = Depends(),
    db: Session = Depends(get_db),
):
    return vehicle_maintenance_crud.get_list(db, vehicle_id, params)


@router.post("/{vehicle_id}/maintenance", response_model=MaintenanceOut)
def create_vehicle_maintenance(
    vehicle_id: UUID,
    payload: MaintenanceCreate,
    db: Session = Depends(get_db),
):
    job = vehicle_maintenance_crud.create(db, vehicle_id, payload)
    return vehicle_maintenance_crud.to_out(job)


@router.put("/{vehicle_id}/maintenance/{maintenance_id}", response_model=MaintenanceOut)
def update_vehicle_maintenance(
    vehicle_id: UUID,
    maintenance_id: UUID,
    payload: MaintenanceUpdate,
    db: Session = Depends(get_db),
):
    job = vehicle_maintenance_crud.update(db, vehicle_id, maintenance_id, payload)
    return vehicle_maintenance_crud.to_out(job)


# ---------------- Costs ----------------

@router.get("/{vehicle_id}/costs", response_model=VehicleCostListResponse)
def get_vehicle_costs(
    vehicle_id: UUID,
    params: VehicleCostRequest = Depends(),
    db: Session = Depends(get_db),
):
    return vehicle_costs_crud.get_list(db, vehicle_id, params)


@router.post("/{vehicle_id}/costs", response_model=VehicleCostOut)
def create_vehicle_cost(
    vehicle_id: UUID,
    payload: VehicleCostCreate,
    db: Session = Depends(get_db),
):
    return vehicle_costs_crud.create(db, vehicle_id, payload)
