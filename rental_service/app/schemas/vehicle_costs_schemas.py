from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ..enum.rental_enum import VehicleCostType


class VehicleCostBase(EmptyStringModel):
    type: VehicleCostType
    title: Optional[str] = Field(None, max_length=200)
    amount_cents: int = Field(gt=0)
    occurred_at: Optional[date] = None  # defaults to today
    vendor: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)
    receipt_url: Optional[str] = Field(None, max_length=512)


class VehicleCostCreate(VehicleCostBase):
    pass


class VehicleCostOut(VehicleCostBase):
    id: UUID
    vehicle_id: UUID
    maintenance_id: Optional[UUID] = None
    occurred_at: date
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VehicleCostRequest(CommonQueryParams):
    type: Optional[str] = None
    occurred_from: Optional[date] = None
    occurred_to: Optional[date] = None


class VehicleCostListResponse(BaseModel):
    costs: List[VehicleCostOut]
    total: int
    total_cents: int
