"""Product and product transaction schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.product import PaymentMethod, TransactionType


class ProductBase(BaseModel):
    """Base product schema."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    category: str = Field("Other", max_length=100)
    unit: str = Field("pieces", min_length=1, max_length=20)
    min_stock: Decimal = Field(Decimal("0"), ge=0)


class ProductCreate(ProductBase):
    sku: str = Field(..., min_length=1, max_length=50)


class ProductUpdate(BaseModel):
    """Product update schema. Stock is not editable here."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    min_stock: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    id: int
    sku: str
    current_stock: Decimal
    last_purchase_price: Decimal
    is_active: bool
    stock_status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PurchaseCreate(BaseModel):
    """Stock bought in for a product."""

    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., gt=0)
    supplier_name: str = Field(..., min_length=1, max_length=255)
    purchase_date: Optional[date] = None
    invoice_number: Optional[str] = Field(None, max_length=100)
    notes: str = ""

    @field_validator("supplier_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class SaleCreate(BaseModel):
    """Stock sold for a product."""

    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    customer_email: Optional[EmailStr] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    sale_date: Optional[date] = None
    notes: str = ""
    allow_oversell: bool = False

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ProductTransactionResponse(BaseModel):
    id: int
    product_id: int
    transaction_type: TransactionType
    quantity: Decimal
    unit_price: Decimal
    total_amount: Decimal
    profit_margin: Decimal
    party_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    invoice_number: Optional[str] = None
    transaction_date: date
    notes: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductSummaryResponse(BaseModel):
    """One row of the trading report."""

    product_id: int
    name: str
    sku: str
    category: str
    unit: str
    current_stock: Decimal
    min_stock: Decimal
    stock_status: str
    total_purchases: Decimal
    total_sales: Decimal
    total_profit: Decimal


class DailySalesResponse(BaseModel):
    day: date
    total_sales: Decimal
    total_profit: Decimal
