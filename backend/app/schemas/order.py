"""Order schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.order import OrderPriority, OrderSource, OrderStatus
from app.schemas.delivery import DeliveryConfirmationResponse, DeliveryDataIn


class OrderItemCreate(BaseModel):
    """Order line; price defaults to the recipe's menu price."""

    recipe_id: int
    quantity: int = Field(..., ge=1)
    price: Optional[Decimal] = Field(None, ge=0)


class OrderItemResponse(BaseModel):
    id: int
    recipe_id: int
    quantity: int
    price: Decimal

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    """Order creation schema."""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    customer_email: Optional[EmailStr] = None
    delivery_address: str = Field(..., min_length=1, max_length=500)
    items: List[OrderItemCreate] = Field(..., min_length=1)
    priority: OrderPriority = OrderPriority.NORMAL
    estimated_delivery: Optional[datetime] = None
    special_instructions: Optional[str] = None
    payment_method: str = Field("cash", max_length=30)
    order_source: OrderSource = OrderSource.ADMIN
    assigned_staff_id: Optional[int] = None

    @field_validator("customer_name", "customer_phone", "delivery_address")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class OrderStatusUpdate(BaseModel):
    """Status transition request."""

    status: OrderStatus
    actor_id: Optional[int] = None
    delivery_data: Optional[DeliveryDataIn] = None
    expected_version: Optional[int] = None


class OrderAssignRequest(BaseModel):
    staff_id: Optional[int] = None
    expected_version: Optional[int] = None


class OrderResponse(BaseModel):
    """Order response schema."""

    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: str
    items: List[OrderItemResponse] = []
    status: OrderStatus
    priority: OrderPriority
    order_time: datetime
    estimated_delivery: Optional[datetime] = None
    total_amount: Decimal
    assigned_staff_id: Optional[int] = None
    special_instructions: Optional[str] = None
    payment_method: str
    order_source: OrderSource
    version: int
    delivery_confirmation: Optional[DeliveryConfirmationResponse] = None

    model_config = {"from_attributes": True}


class OrderEventResponse(BaseModel):
    id: int
    order_id: int
    event_type: str
    payload: Dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}
