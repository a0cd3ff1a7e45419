"""Payroll schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.payroll import PayrollStatus

MONTH_REGEX = r"^\d{4}-(0[1-9]|1[0-2])$"


class PayrollGenerateRequest(BaseModel):
    month: str = Field(..., pattern=MONTH_REGEX)


class PayrollUpdate(BaseModel):
    """Adjustable pay components; net salary is always recomputed."""

    overtime: Optional[Decimal] = Field(None, ge=0)
    bonus: Optional[Decimal] = Field(None, ge=0)
    deductions: Optional[Decimal] = Field(None, ge=0)
    status: Optional[Literal["pending", "paid"]] = None


class PayrollRecordResponse(BaseModel):
    id: int
    staff_id: int
    staff_name: Optional[str] = None
    month: str
    base_salary: Decimal
    overtime: Decimal
    bonus: Decimal
    deductions: Decimal
    net_salary: Decimal
    status: PayrollStatus
    updated_at: datetime

    model_config = {"from_attributes": True}


class PayrollSummaryResponse(BaseModel):
    month: Optional[str] = None
    records: int
    total: Decimal
    paid: Decimal
    pending: Decimal

    model_config = {"from_attributes": True}
