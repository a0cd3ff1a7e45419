"""Customer schemas.

Stored fields are written through ``CustomerCreate``/``CustomerUpdate``; the
response adds the statistics derived from order history.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.customer import CustomerStatus


class CustomerAddress(BaseModel):
    id: str
    label: str = "Home"
    address: str = Field(..., min_length=1)
    is_default: bool = False


class CustomerPreferences(BaseModel):
    favorite_items: List[str] = []
    dietary_restrictions: List[str] = []
    spice_level: Literal["mild", "medium", "spicy"] = "medium"


class CustomerCreate(BaseModel):
    """Customer creation schema."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    addresses: List[CustomerAddress] = []
    preferences: CustomerPreferences = CustomerPreferences()
    notes: str = ""
    status: CustomerStatus = CustomerStatus.ACTIVE

    @field_validator("name", "phone")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class CustomerUpdate(BaseModel):
    """Partial customer update; only the fields sent are changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    addresses: Optional[List[CustomerAddress]] = None
    preferences: Optional[CustomerPreferences] = None
    notes: Optional[str] = None
    status: Optional[CustomerStatus] = None


class OrderHistoryResponse(BaseModel):
    order_id: int
    date: datetime
    amount: Decimal
    status: str

    model_config = {"from_attributes": True}


class CustomerResponse(BaseModel):
    """Customer with statistics derived from its orders.

    ``id`` is None for customers known only through their orders.
    """

    id: Optional[int] = None
    name: str
    phone: str
    email: Optional[str] = None
    addresses: List[dict] = []
    preferences: dict = {}
    notes: str = ""
    status: str
    order_history: List[OrderHistoryResponse] = []
    total_orders: int
    total_spent: Decimal
    average_order_value: Decimal
    loyalty_points: int
    last_order_date: Optional[datetime] = None
    customer_since: Optional[datetime] = None

    model_config = {"from_attributes": True}
