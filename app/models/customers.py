# app/models/customers.py

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class CustomerIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(default=None, description="May span several lines")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @field_validator("email", "phone", "address", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CustomerOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
