"""Kitchen staff model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, Enum as SQLEnum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import non_negative


class StaffRole(str, Enum):
    """Staff roles."""
    CHEF = "chef"
    DELIVERY = "delivery"
    MANAGER = "manager"
    CASHIER = "cashier"
    HELPER = "helper"


ROLE_DEPARTMENTS = {
    StaffRole.CHEF: "kitchen",
    StaffRole.HELPER: "kitchen",
    StaffRole.DELIVERY: "logistics",
    StaffRole.MANAGER: "management",
    StaffRole.CASHIER: "front_of_house",
}


def department_for_role(role: StaffRole) -> str:
    return ROLE_DEPARTMENTS.get(StaffRole(role), "general")


class StaffMember(Base, TimestampMixin):
    """A person who cooks, delivers or manages; assigned to orders by id."""

    __tablename__ = "staff_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[StaffRole] = mapped_column(SQLEnum(StaffRole), default=StaffRole.CHEF, nullable=False)
    department: Mapped[str] = mapped_column(String(50), default="kitchen", nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    hire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    payroll_records: Mapped[list["PayrollRecord"]] = relationship(
        "PayrollRecord", back_populates="staff", cascade="all, delete-orphan"
    )

    @validates("base_salary")
    def _validate_base_salary(self, key, value):
        return non_negative(key, value)


# Forward references
from app.models.payroll import PayrollRecord
