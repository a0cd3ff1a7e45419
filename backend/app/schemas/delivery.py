"""Delivery confirmation schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.delivery import DeliveryStatus


class DeliveryDataIn(BaseModel):
    """Quantity actually handed over, reported with a delivery."""

    quantity: int = Field(..., ge=0)
    notes: str = ""


class DeliveryConfirmRequest(DeliveryDataIn):
    delivered_by_id: Optional[int] = None


class DeliveryConfirmationResponse(BaseModel):
    """Delivery confirmation; ``variance`` is delivered minus ordered."""

    id: int
    order_id: int
    delivered_quantity: int
    ordered_quantity: int
    variance: int
    delivery_notes: str
    delivered_by_id: Optional[int] = None
    delivery_date: datetime
    delivery_status: DeliveryStatus

    model_config = {"from_attributes": True}
