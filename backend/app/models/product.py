"""Resale product models: catalogue entries and their purchase and sale transactions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Enum as SQLEnum, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import non_negative, positive


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"
    CREDIT = "credit"


class Product(Base, TimestampMixin):
    """Packaged goods bought in and sold on, separate from kitchen ingredients.

    ``current_stock`` only changes through purchase and sale transactions.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), default="Other", nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="pieces", nullable=False)
    current_stock: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    min_stock: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    last_purchase_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    transactions: Mapped[list["ProductTransaction"]] = relationship(
        "ProductTransaction",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductTransaction.id",
    )

    @validates("current_stock", "min_stock", "last_purchase_price")
    def _validate_non_negative(self, key, value):
        return non_negative(key, value)

    @property
    def stock_status(self) -> str:
        """``out``, ``low`` or ``normal``."""
        if self.current_stock == 0:
            return "out"
        if self.current_stock <= self.min_stock:
            return "low"
        return "normal"


class ProductTransaction(Base):
    """A purchase into or a sale out of product stock. Rows are never edited."""

    __tablename__ = "product_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(SQLEnum(TransactionType), nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Sales only: revenue over the product's last purchase price
    profit_margin: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    party_name: Mapped[str] = mapped_column(String(255), nullable=False)  # supplier or customer
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(SQLEnum(PaymentMethod), nullable=True)
    invoice_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="transactions")

    @validates("quantity", "unit_price")
    def _validate_positive(self, key, value):
        return positive(key, value)
