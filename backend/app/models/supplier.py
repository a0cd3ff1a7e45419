"""Supplier model."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, JSON, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import rating_score, validate_list


class Supplier(Base, TimestampMixin):
    """Vendor that delivers raw materials to the kitchen."""

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    categories: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)  # ['vegetables', 'dairy']
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 1), default=Decimal("0"), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    inventory_items: Mapped[list["InventoryItem"]] = relationship(
        "InventoryItem", back_populates="supplier"
    )
    purchase_orders: Mapped[list["PurchaseOrder"]] = relationship(
        "PurchaseOrder", back_populates="supplier"
    )

    @validates("rating")
    def _validate_rating(self, key, value):
        return rating_score(key, value)

    @validates("categories")
    def _validate_categories(self, key, value):
        return validate_list(key, value)


# Forward references
from app.models.inventory import InventoryItem
from app.models.purchase import PurchaseOrder
