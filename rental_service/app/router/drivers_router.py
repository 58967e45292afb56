from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin
from shared.core.database import get_rental_db as get_db
from ..crud.fleet import drivers_crud as crud
from ..schemas.drivers_schemas import (
    DriverCreate, DriverListResponse, DriverOut, DriverRequest, DriverVerificationUpdate
)

router = APIRouter(
    prefix="/api/drivers",
    tags=["drivers"],
    dependencies=[Depends(allow_admin)]
)


@router.get("/all", response_model=DriverListResponse)
def get_drivers(
    params: DriverRequest = Depends(),
    db: Session = Depends(get_db),
):
    return crud.get_list(db, params)


@router.get("/{driver_id}", response_model=DriverOut)
def get_driver(driver_id: UUID, db: Session = Depends(get_db)):
    return crud.get_driver(db, driver_id)


@router.post("/", response_model=DriverOut)
def create_driver(payload: DriverCreate, db: Session = Depends(get_db)):
    return crud.create(db, payload)


@router.post("/{driver_id}/verification", response_model=DriverOut)
def finalize_verification(
    driver_id: UUID,
    payload: DriverVerificationUpdate,
    db: Session = Depends(get_db),
):
    return crud.finalize_verification(db, driver_id, payload)
