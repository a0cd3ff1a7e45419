"""Stock movement schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.stock import MovementType


class StockMovementCreate(BaseModel):
    """Stock movement request body."""

    inventory_item_id: int
    movement_type: Literal["in", "out"]
    quantity: Decimal = Field(..., ge=1)
    reason: str = Field(..., min_length=1, max_length=255)
    reference_number: Optional[str] = Field(None, max_length=100)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    total_cost: Decimal = Field(Decimal("0"), ge=0)
    performed_by: str = Field(..., min_length=1, max_length=255)
    notes: str = ""
    movement_date: Optional[datetime] = None

    @field_validator("reason", "performed_by")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class StockMovementResponse(BaseModel):
    """Stock movement response schema."""

    id: int
    inventory_item_id: int
    movement_type: MovementType
    quantity: Decimal
    reason: str
    reference_number: Optional[str] = None
    unit_cost: Decimal
    total_cost: Decimal
    performed_by: str
    notes: str
    movement_date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
