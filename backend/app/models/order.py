"""Customer order models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin, VersionMixin
from app.models.validators import non_negative, positive


class OrderStatus(str, Enum):
    """Lifecycle status of an order."""

    PENDING = "pending"
    COOKING = "cooking"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class OrderSource(str, Enum):
    ADMIN = "admin"
    ONLINE = "online"


class Order(Base, TimestampMixin, VersionMixin):
    """A customer's order, moved through its lifecycle by status transitions only.

    Orders are never deleted; cancellation is a status.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    delivery_address: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True
    )
    priority: Mapped[OrderPriority] = mapped_column(
        SQLEnum(OrderPriority), default=OrderPriority.NORMAL, nullable=False
    )
    order_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    estimated_delivery: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    assigned_staff_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True, index=True
    )
    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_method: Mapped[str] = mapped_column(String(30), default="cash", nullable=False)
    order_source: Mapped[OrderSource] = mapped_column(
        SQLEnum(OrderSource), default=OrderSource.ADMIN, nullable=False
    )

    # Relationships
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    assigned_staff: Mapped[Optional["StaffMember"]] = relationship("StaffMember")
    delivery_confirmation: Mapped[Optional["DeliveryConfirmation"]] = relationship(
        "DeliveryConfirmation", back_populates="order", uselist=False
    )
    events: Mapped[list["OrderEvent"]] = relationship(
        "OrderEvent", back_populates="order", order_by="OrderEvent.id"
    )

    @validates("total_amount")
    def _validate_total(self, key, value):
        return non_negative(key, value)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class OrderItem(Base):
    """One dish line of an order; price is the unit price at order time."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipe_id: Mapped[int] = mapped_column(ForeignKey("recipes.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Relationships
    order: Mapped["Order"] = relationship("Order", back_populates="items")
    recipe: Mapped["Recipe"] = relationship("Recipe")

    @validates("quantity")
    def _validate_quantity(self, key, value):
        return positive(key, value)

    @validates("price")
    def _validate_price(self, key, value):
        return non_negative(key, value)


class OrderEvent(Base):
    """Outbox row written in the same transaction as the change it describes."""

    __tablename__ = "order_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)  # order.created, order.status_changed
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="events")


# Forward references
from app.models.recipe import Recipe
from app.models.staff import StaffMember
from app.models.delivery import DeliveryConfirmation
