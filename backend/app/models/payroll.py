"""Monthly payroll records."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from sqlalchemy import Enum as SQLEnum, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import month_string, non_negative


class PayrollStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PayrollRecord(Base, TimestampMixin):
    """One staff member's pay for one month.

    ``net_salary`` always equals base + overtime + bonus - deductions; call
    ``recalculate()`` after touching any of the components.
    """

    __tablename__ = "payroll_records"
    __table_args__ = (
        UniqueConstraint("staff_id", "month", name="uq_payroll_staff_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    staff_id: Mapped[int] = mapped_column(
        ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)  # YYYY-MM
    base_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    overtime: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    deductions: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    status: Mapped[PayrollStatus] = mapped_column(
        SQLEnum(PayrollStatus), default=PayrollStatus.PENDING, nullable=False
    )

    # Relationships
    staff: Mapped["StaffMember"] = relationship("StaffMember", back_populates="payroll_records")

    @validates("base_salary", "overtime", "bonus", "deductions")
    def _validate_amounts(self, key, value):
        return non_negative(key, value)

    @validates("month")
    def _validate_month(self, key, value):
        return month_string(key, value)

    @property
    def staff_name(self) -> str:
        return self.staff.name if self.staff else ""

    def recalculate(self) -> Decimal:
        self.net_salary = (
            Decimal(self.base_salary or 0)
            + Decimal(self.overtime or 0)
            + Decimal(self.bonus or 0)
            - Decimal(self.deductions or 0)
        )
        return self.net_salary


# Forward references
from app.models.staff import StaffMember
