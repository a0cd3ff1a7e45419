"""Staff schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.staff import StaffRole


class StaffBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    role: StaffRole = StaffRole.CHEF
    base_salary: Decimal = Field(Decimal("0"), ge=0)
    hire_date: Optional[date] = None


class StaffCreate(StaffBase):
    """Department is derived from the role when omitted."""

    department: Optional[str] = None


class StaffUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[StaffRole] = None
    department: Optional[str] = None
    base_salary: Optional[Decimal] = Field(None, ge=0)
    hire_date: Optional[date] = None
    is_active: Optional[bool] = None


class StaffResponse(StaffBase):
    id: int
    department: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
