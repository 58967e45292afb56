from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, joinedload

from shared.core.exceptions import NotFoundError
from shared.core.schemas import Lookup
from ...enum.rental_enum import ContractStatus, FeeFrequency
from ...models.drivers import Driver
from ...models.rental_contracts import RentalContract
from ...models.vehicles import Vehicle
from ...schemas.contracts_schemas import ContractListResponse, ContractOut, ContractRequest

# ----------------------------------------------------
# Filters
# ----------------------------------------------------


def build_filters(params: ContractRequest):
    filters = []

    if params.status and params.status.lower() != "all":
        filters.append(RentalContract.status == params.status.upper())

    if params.driver_id:
        filters.append(RentalContract.driver_id == params.driver_id)

    if params.vehicle_id:
        filters.append(RentalContract.vehicle_id == params.vehicle_id)

    # search by driver name or registration
    if params.search:
        like = f"%{params.search}%"
        filters.append(
            or_(
                Driver.full_name.ilike(like),
                Vehicle.reg.ilike(like),
            )
        )

    return filters


def to_out(contract: RentalContract) -> ContractOut:
    out = ContractOut.model_validate(contract)
    out.driver_name = contract.driver.full_name if contract.driver else None
    out.vehicle_reg = contract.vehicle.reg if contract.vehicle else None
    return out


# ----------------------------------------------------
# List / get
# ----------------------------------------------------
def get_list(db: Session, params: ContractRequest) -> ContractListResponse:
    q = (
        db.query(RentalContract)
        .join(Driver, Driver.id == RentalContract.driver_id)
        .join(Vehicle, Vehicle.id == RentalContract.vehicle_id)
        .filter(*build_filters(params))
    )

    total = q.with_entities(func.count(RentalContract.id)).scalar()
    rows = (
        q.options(joinedload(RentalContract.driver), joinedload(RentalContract.vehicle))
        .order_by(RentalContract.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return ContractListResponse(contracts=[to_out(row) for row in rows], total=total)


def get_contract(db: Session, contract_id: UUID) -> RentalContract:
    contract = db.get(RentalContract, contract_id)
    if not contract:
        raise NotFoundError(f"Contract {contract_id} not found")
    return contract


def get_driver_contract(db: Session, driver_id: UUID) -> Optional[RentalContract]:
    """The contract a driver should see: a live one first, else the latest."""
    live_first = case(
        (RentalContract.status.in_([
            ContractStatus.ACTIVE.value,
            ContractStatus.PAUSED.value,
            ContractStatus.DRIVER_SIGNED.value,
            ContractStatus.SENT_TO_DRIVER.value,
        ]), 0),
        else_=1,
    )
    return (
        db.query(RentalContract)
        .filter(
            RentalContract.driver_id == driver_id,
            # drafts are not visible to the driver until sent
            RentalContract.status != ContractStatus.DRAFT.value,
        )
        .order_by(live_first, RentalContract.created_at.desc())
        .first()
    )


# ----------------------------------------------------
# Lookups
# ----------------------------------------------------
def contract_status_lookup(db: Session) -> List[Lookup]:
    return [
        Lookup(id=status.value, name=status.value.replace("_", " ").capitalize())
        for status in ContractStatus
    ]


def contract_frequency_lookup(db: Session) -> List[Lookup]:
    return [
        Lookup(id=frequency.value, name=frequency.value.capitalize())
        for frequency in FeeFrequency
    ]
