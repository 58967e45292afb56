from pydantic import BaseModel, Field
from typing import Generic, Optional, TypeVar, Union
from uuid import UUID

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    user_id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None
    driver_id: Optional[UUID] = None  # present on driver tokens
    exp: Optional[int] = None


class CommonQueryParams(EmptyStringModel):
    search: Optional[str] = None
    skip: Optional[int] = Field(0, ge=0)
    limit: Optional[int] = Field(100, ge=1, le=500)


class Lookup(BaseModel):
    id: Union[str, UUID]  # accepts both UUID and str
    name: str

    class Config:
        from_attributes = True


class JsonOutResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
