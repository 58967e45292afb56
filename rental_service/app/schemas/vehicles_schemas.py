from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ..enum.rental_enum import VehicleStatus


class VehicleBase(EmptyStringModel):
    reg: str = Field(min_length=1, max_length=32)
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(None, ge=1950, le=2100)
    type: Optional[str] = None


class VehicleCreate(VehicleBase):
    pass


class VehicleOut(VehicleBase):
    id: UUID
    status: VehicleStatus
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VehicleRequest(CommonQueryParams):
    status: Optional[str] = None


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleOut]
    total: int


class VehicleStatusUpdate(BaseModel):
    status: VehicleStatus
