from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ..enum.rental_enum import DriverVerificationStatus


class DriverBase(EmptyStringModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=32)
    id_number: Optional[str] = Field(None, max_length=32)
    address_line1: Optional[str] = Field(None, max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=16)


class DriverCreate(DriverBase):
    user_id: Optional[UUID] = None  # account id in the auth service


class DriverOut(DriverBase):
    id: UUID
    user_id: Optional[UUID] = None
    verification_status: DriverVerificationStatus
    verification_note: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverProfileUpdate(EmptyStringModel):
    """Fields a driver may change themselves; email and verification stay with the admin."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    id_number: Optional[str] = Field(None, max_length=32)
    address_line1: Optional[str] = Field(None, max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=16)


class DriverRequest(CommonQueryParams):
    verification_status: Optional[str] = None


class DriverListResponse(BaseModel):
    drivers: List[DriverOut]
    total: int


class DriverVerificationUpdate(BaseModel):
    status: DriverVerificationStatus
    note: Optional[str] = Field(None, max_length=1000)

    @field_validator("status")
    @classmethod
    def final_decision_only(cls, value: DriverVerificationStatus):
        if value not in (DriverVerificationStatus.VERIFIED, DriverVerificationStatus.REJECTED):
            raise ValueError("status must be VERIFIED or REJECTED")
        return value
