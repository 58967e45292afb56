from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ..enum.rental_enum import ContractStatus, FeeFrequency


class ContractBase(EmptyStringModel):
    fee_amount_cents: int = Field(gt=0)
    frequency: FeeFrequency
    due_weekday: Optional[int] = Field(None, ge=0, le=6)         # WEEKLY only, 0=Sunday
    due_day_of_month: Optional[int] = Field(None, ge=1, le=31)   # MONTHLY only
    start_date: date
    end_date: Optional[date] = None
    terms_text: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ContractCreate(ContractBase):
    driver_id: UUID
    vehicle_id: UUID


class ContractUpdate(EmptyStringModel):
    # only DRAFT contracts accept edits
    fee_amount_cents: Optional[int] = Field(None, gt=0)
    frequency: Optional[FeeFrequency] = None
    due_weekday: Optional[int] = Field(None, ge=0, le=6)
    due_day_of_month: Optional[int] = Field(None, ge=1, le=31)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    terms_text: Optional[str] = None


class ContractOut(BaseModel):
    id: UUID
    driver_id: UUID
    vehicle_id: UUID
    fee_amount_cents: int
    frequency: FeeFrequency
    due_weekday: Optional[int] = None
    due_day_of_month: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    status: ContractStatus
    terms_text: Optional[str] = None
    terms_hash: Optional[str] = None
    driver_signature_url: Optional[str] = None
    driver_signed_at: Optional[datetime] = None
    sent_to_driver_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    admin_signed_at: Optional[datetime] = None
    signed_document_path: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    driver_name: Optional[str] = None
    vehicle_reg: Optional[str] = None

    model_config = {"from_attributes": True}


class ContractRequest(CommonQueryParams):
    status: Optional[str] = None       # "all" | "DRAFT" | "ACTIVE" ...
    driver_id: Optional[UUID] = None
    vehicle_id: Optional[UUID] = None


class ContractListResponse(BaseModel):
    contracts: List[ContractOut]
    total: int


class ContractSignRequest(BaseModel):
    signature_url: str = Field(min_length=1, max_length=512)
    accept_terms: bool
    accept_payment_terms: bool


class ContractCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class ContractEndRequest(BaseModel):
    end_date: Optional[date] = None
