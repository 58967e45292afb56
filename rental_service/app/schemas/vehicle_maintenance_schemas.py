from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ..enum.rental_enum import MaintenanceStatus


class MaintenanceBase(EmptyStringModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    scheduled_at: Optional[date] = None
    odometer_km: Optional[int] = Field(None, ge=0)
    estimated_cost_cents: Optional[int] = Field(None, ge=0)


class MaintenanceCreate(MaintenanceBase):
    pass


class MaintenanceUpdate(EmptyStringModel):
    status: Optional[MaintenanceStatus] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    scheduled_at: Optional[date] = None
    completed_at: Optional[date] = None
    odometer_km: Optional[int] = Field(None, ge=0)
    estimated_cost_cents: Optional[int] = Field(None, ge=0)
    actual_cost_cents: Optional[int] = Field(None, ge=0)


class MaintenanceOut(MaintenanceBase):
    id: UUID
    vehicle_id: UUID
    status: MaintenanceStatus
    completed_at: Optional[date] = None
    actual_cost_cents: Optional[int] = None
    created_at: Optional[datetime] = None

    vehicle_reg: Optional[str] = None

    model_config = {"from_attributes": True}


class MaintenanceRequest(CommonQueryParams):
    status: Optional[str] = None


class MaintenanceListResponse(BaseModel):
    maintenance: List[MaintenanceOut]
    total: int
