"""Delivery confirmation model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import non_negative


class DeliveryStatus(str, Enum):
    """Stored outcome of a delivery; over-delivery is also COMPLETED."""

    COMPLETED = "completed"
    PARTIAL = "partial"


class DeliveryConfirmation(Base, TimestampMixin):
    """What was actually handed over for an order, against what was ordered."""

    __tablename__ = "delivery_confirmations"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    delivered_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    ordered_quantity: Mapped[int] = mapped_column(Integer, nullable=False)  # snapshot at confirmation
    delivery_notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    delivered_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True
    )
    delivery_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    delivery_status: Mapped[DeliveryStatus] = mapped_column(SQLEnum(DeliveryStatus), nullable=False)

    # Relationships
    order: Mapped["Order"] = relationship("Order", back_populates="delivery_confirmation")
    delivered_by: Mapped[Optional["StaffMember"]] = relationship("StaffMember")

    @validates("delivered_quantity", "ordered_quantity")
    def _validate_quantities(self, key, value):
        return non_negative(key, value)

    @property
    def variance(self) -> int:
        """Positive for extra meals handed over, negative for a shortfall."""
        return self.delivered_quantity - self.ordered_quantity


# Forward references
from app.models.order import Order
from app.models.staff import StaffMember
