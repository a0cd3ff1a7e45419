"""Inventory item model: the current stock snapshot of a material."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin, SoftDeleteMixin
from app.models.validators import non_negative


class InventoryItem(Base, TimestampMixin, SoftDeleteMixin):
    """A stocked material.

    ``current_stock`` is the running fold of the item's stock movements and is
    only changed by the inventory ledger. Items are soft-deleted so their
    movement history never points at a missing row.
    """

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), default="general", nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="kg", nullable=False)  # kg, g, L, ml, pcs
    current_stock: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    min_stock: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    max_stock: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    last_restocked: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Relationships
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="inventory_items")
    movements: Mapped[list["StockMovement"]] = relationship(
        "StockMovement", back_populates="inventory_item", order_by="StockMovement.id"
    )

    @validates("current_stock", "min_stock", "max_stock", "cost_per_unit")
    def _validate_non_negative(self, key, value):
        return non_negative(key, value)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock


# Forward references
from app.models.supplier import Supplier
from app.models.stock import StockMovement
