"""Inventory item schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class InventoryItemBase(BaseModel):
    """Base inventory item schema."""

    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field("general", max_length=100)
    unit: str = Field("kg", min_length=1, max_length=20)
    min_stock: Decimal = Field(Decimal("0"), ge=0)
    max_stock: Decimal = Field(Decimal("0"), ge=0)
    cost_per_unit: Decimal = Field(Decimal("0"), ge=0)
    supplier_id: Optional[int] = None
    expiry_date: Optional[date] = None


class InventoryItemCreate(InventoryItemBase):
    """Inventory item creation schema.

    ``current_stock`` is the opening balance; afterwards stock only changes
    through stock movements.
    """

    current_stock: Decimal = Field(Decimal("0"), ge=0)


class InventoryItemUpdate(BaseModel):
    """Inventory item update schema. Stock level is not editable here."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    min_stock: Optional[Decimal] = Field(None, ge=0)
    max_stock: Optional[Decimal] = Field(None, ge=0)
    cost_per_unit: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    expiry_date: Optional[date] = None


class InventoryItemResponse(InventoryItemBase):
    """Inventory item response schema."""

    id: int
    current_stock: Decimal
    last_restocked: Optional[datetime] = None
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
