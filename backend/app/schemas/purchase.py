"""Purchase order schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.purchase import PurchaseOrderStatus


class PurchaseOrderLineCreate(BaseModel):
    inventory_item_id: int
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)


class PurchaseOrderLineResponse(BaseModel):
    id: int
    inventory_item_id: int
    quantity: Decimal
    unit_cost: Decimal
    line_total: Decimal

    model_config = {"from_attributes": True}


class PurchaseOrderCreate(BaseModel):
    """Purchase order creation schema."""

    supplier_id: int
    lines: List[PurchaseOrderLineCreate] = Field(..., min_length=1)
    order_date: Optional[date] = None
    expected_delivery: Optional[date] = None
    notes: Optional[str] = None


class PurchaseOrderStatusUpdate(BaseModel):
    """Move a purchase order to ``ordered`` or ``cancelled``."""

    status: PurchaseOrderStatus
    expected_version: Optional[int] = None


class PurchaseOrderReceive(BaseModel):
    """Goods received; quantities are keyed by line id and default to the ordered quantity."""

    performed_by: str = Field(..., min_length=1, max_length=255)
    received_quantities: Dict[int, Decimal] = Field(default_factory=dict)
    expected_version: Optional[int] = None

    @field_validator("performed_by")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class PurchaseOrderResponse(BaseModel):
    """Purchase order response schema."""

    id: int
    reference: str
    supplier_id: Optional[int] = None
    status: PurchaseOrderStatus
    order_date: date
    expected_delivery: Optional[date] = None
    total_amount: Decimal
    received_at: Optional[datetime] = None
    created_by: Optional[str] = None
    notes: Optional[str] = None
    version: int
    lines: List[PurchaseOrderLineResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
