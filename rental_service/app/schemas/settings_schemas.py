from typing import Optional
from pydantic import BaseModel, Field


class PaymentSettingsOut(BaseModel):
    auto_generate_next: bool
    grace_period_days: int
    backfill_cycles: int
    default_due_weekday: Optional[int] = None
    default_due_day: Optional[int] = None
    currency: str


class PaymentSettingsUpdate(BaseModel):
    auto_generate_next: Optional[bool] = None
    grace_period_days: Optional[int] = Field(None, ge=0, le=60)
    backfill_cycles: Optional[int] = Field(None, ge=1, le=12)
    default_due_weekday: Optional[int] = Field(None, ge=0, le=6)
    default_due_day: Optional[int] = Field(None, ge=1, le=31)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
