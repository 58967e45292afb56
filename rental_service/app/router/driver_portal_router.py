from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_driver
from shared.core.database import get_rental_db as get_db
from shared.core.exceptions import NotFoundError
from shared.core.schemas import UserToken
from ..crud.contracts import contract_lifecycle as lifecycle
from ..crud.contracts import contracts_crud
from ..crud.fleet import drivers_crud
from ..crud.payments import payments_crud
from ..schemas.contracts_schemas import ContractOut, ContractSignRequest
from ..schemas.drivers_schemas import DriverOut, DriverProfileUpdate
from ..schemas.payments_schemas import PaymentListResponse, PaymentRequest

router = APIRouter(
    prefix="/api/driver",
    tags=["driver portal"],
)


@router.get("/profile", response_model=DriverOut)
def get_profile(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_driver)
):
    return drivers_crud.get_current_driver(db, current_user)


@router.put("/profile", response_model=DriverOut)
def update_profile(
    payload: DriverProfileUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_driver)
):
    driver = drivers_crud.get_current_driver(db, current_user)
    return drivers_crud.update_profile(db, driver.id, payload)


@router.get("/contract", response_model=ContractOut)
def get_my_contract(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_driver)
):
    driver = drivers_crud.get_current_driver(db, current_user)
    contract = contracts_crud.get_driver_contract(db, driver.id)
    if not contract:
        raise NotFoundError("No contract has been sent to you yet")
    return contracts_crud.to_out(contract)


@router.post("/contract/{contract_id}/sign", response_model=ContractOut)
def sign_contract(
    contract_id: UUID,
    payload: ContractSignRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_driver)
):
    driver = drivers_crud.get_current_driver(db, current_user)
    return contracts_crud.to_out(lifecycle.driver_sign(db, contract_id, driver.id, payload))


@router.get("/payments", response_model=PaymentListResponse)
def get_my_payments(
    params: PaymentRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_driver)
):
    driver = drivers_crud.get_current_driver(db, current_user)
    return payments_crud.get_driver_payments(db, driver.id, params)
