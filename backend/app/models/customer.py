"""Customer seed record.

Only identity and preference fields are stored; spend and order statistics
are derived from the order history on every read.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy import Enum as SQLEnum, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import validate_dict, validate_list


class CustomerStatus(str, Enum):
    ACTIVE = "active"
    VIP = "vip"
    INACTIVE = "inactive"


class Customer(Base, TimestampMixin):
    """Customer registered by staff; matched to orders by phone number."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    addresses: Mapped[list] = mapped_column(JSON, default=list, nullable=False)  # [{id, label, address, is_default}]
    preferences: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[CustomerStatus] = mapped_column(
        SQLEnum(CustomerStatus), default=CustomerStatus.ACTIVE, nullable=False
    )

    @validates("addresses")
    def _validate_addresses(self, key, value):
        return validate_list(key, value)

    @validates("preferences")
    def _validate_preferences(self, key, value):
        return validate_dict(key, value)
