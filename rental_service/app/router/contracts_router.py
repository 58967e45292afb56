from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_admin
from shared.core.database import get_rental_db as get_db
from shared.core.schemas import Lookup, UserToken
from ..crud.contracts import contract_lifecycle as lifecycle
from ..crud.contracts import contracts_crud as crud
from ..crud.system.notifier import Notifier
from ..schemas.contracts_schemas import (
    ContractCancelRequest, ContractCreate, ContractEndRequest, ContractListResponse,
    ContractOut, ContractRequest, ContractUpdate
)

router = APIRouter(
    prefix="/api/contracts",
    tags=["contracts"],
    dependencies=[Depends(allow_admin)]
)


@router.get("/all", response_model=ContractListResponse)
def get_contracts(
    params: ContractRequest = Depends(),
    db: Session = Depends(get_db),
):
    return crud.get_list(db, params)


@router.get("/status-lookup", response_model=List[Lookup])
def contract_status_lookup(db: Session = Depends(get_db)):
    return crud.contract_status_lookup(db)


@router.get("/frequency-lookup", response_model=List[Lookup])
def contract_frequency_lookup(db: Session = Depends(get_db)):
    return crud.contract_frequency_lookup(db)


@router.get("/{contract_id}", response_model=ContractOut)
def get_contract(contract_id: UUID, db: Session = Depends(get_db)):
    return crud.to_out(crud.get_contract(db, contract_id))


@router.post("/", response_model=ContractOut)
def create_contract(
    payload: ContractCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_admin)
):
    return crud.to_out(lifecycle.create_contract(db, payload))


@router.put("/{contract_id}", response_model=ContractOut)
def update_contract(
    contract_id: UUID,
    payload: ContractUpdate,
    db: Session = Depends(get_db),
):
    return crud.to_out(lifecycle.update_draft(db, contract_id, payload))


@router.post("/{contract_id}/send", response_model=ContractOut)
def send_contract(
    contract_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    return crud.to_out(lifecycle.send_to_driver(db, contract_id, Notifier(db, background_tasks)))


@router.post("/{contract_id}/activate", response_model=ContractOut)
def activate_contract(
    contract_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    return crud.to_out(lifecycle.activate(db, contract_id, Notifier(db, background_tasks)))


@router.post("/{contract_id}/reject", response_model=ContractOut)
def reject_contract(
    contract_id: UUID,
    background_tasks: BackgroundTasks,
    payload: ContractCancelRequest = ContractCancelRequest(),
    db: Session = Depends(get_db),
):
    notifier = Notifier(db, background_tasks)
    return crud.to_out(lifecycle.cancel(db, contract_id, payload.reason, notifier))


@router.post("/{contract_id}/suspend", response_model=ContractOut)
def suspend_contract(contract_id: UUID, db: Session = Depends(get_db)):
    return crud.to_out(lifecycle.pause(db, contract_id))


@router.post("/{contract_id}/resume", response_model=ContractOut)
def resume_contract(contract_id: UUID, db: Session = Depends(get_db)):
    return crud.to_out(lifecycle.resume(db, contract_id))


@router.post("/{contract_id}/end", response_model=ContractOut)
def end_contract(
    contract_id: UUID,
    payload: ContractEndRequest = ContractEndRequest(),
    db: Session = Depends(get_db),
):
    return crud.to_out(lifecycle.end(db, contract_id, payload.end_date))
