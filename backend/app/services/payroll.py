"""Monthly payroll generation and adjustment."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFound, ValidationError
from app.db.session import atomic
from app.models.payroll import PayrollRecord, PayrollStatus
from app.models.staff import StaffMember
from app.models.validators import MONTH_PATTERN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayrollSummary:
    month: Optional[str]
    records: int
    total: Decimal
    paid: Decimal
    pending: Decimal


def _month(value: str) -> str:
    if not value or not MONTH_PATTERN.match(value):
        raise ValidationError(f"month must look like YYYY-MM, got {value!r}", field="month")
    return value


def list_records(db: Session, month: Optional[str] = None) -> List[PayrollRecord]:
    stmt = select(PayrollRecord).order_by(PayrollRecord.month.desc(), PayrollRecord.staff_id)
    if month:
        stmt = stmt.where(PayrollRecord.month == _month(month))
    return list(db.scalars(stmt))


def generate_month(db: Session, month: str) -> List[PayrollRecord]:
    """Create a pending record at base salary for every active staff member.

    Staff who already have a record for the month are left untouched, so
    generating twice is harmless. Returns all records of the month.
    """
    month = _month(month)
    existing = set(db.scalars(select(PayrollRecord.staff_id).where(PayrollRecord.month == month)))
    staff = db.scalars(
        select(StaffMember).where(StaffMember.is_active.is_(True)).order_by(StaffMember.id)
    ).all()

    created = 0
    with atomic(db, "generate_payroll", month=month):
        for member in staff:
            if member.id in existing:
                continue
            record = PayrollRecord(
                staff_id=member.id,
                month=month,
                base_salary=member.base_salary,
                status=PayrollStatus.PENDING,
            )
            record.recalculate()
            db.add(record)
            created += 1

    logger.info(f"Payroll {month}: {created} records generated, {len(existing)} already present")
    return list_records(db, month)


def get_record(db: Session, record_id: int) -> PayrollRecord:
    record = db.get(PayrollRecord, record_id)
    if record is None:
        raise NotFound("PayrollRecord", record_id)
    return record


def update_record(
    db: Session,
    record_id: int,
    *,
    overtime: Optional[Decimal] = None,
    bonus: Optional[Decimal] = None,
    deductions: Optional[Decimal] = None,
    status: Optional[str] = None,
) -> PayrollRecord:
    """Adjust pay components or mark a record paid; net salary is recomputed."""
    record = get_record(db, record_id)
    with atomic(db, "update_payroll", record_id=record_id):
        try:
            if overtime is not None:
                record.overtime = overtime
            if bonus is not None:
                record.bonus = bonus
            if deductions is not None:
                record.deductions = deductions
            if status is not None:
                record.status = PayrollStatus(status)
        except ValueError as e:
            raise ValidationError(str(e), record_id=record_id)
        record.recalculate()
    db.refresh(record)
    logger.info(f"Payroll record {record.id} ({record.month}) updated: net {record.net_salary}, {record.status.value}")
    return record


def summarize(records: Iterable[PayrollRecord], month: Optional[str] = None) -> PayrollSummary:
    records = list(records)
    total = sum((Decimal(r.net_salary) for r in records), Decimal("0"))
    paid = sum((Decimal(r.net_salary) for r in records if r.status is PayrollStatus.PAID), Decimal("0"))
    return PayrollSummary(month=month, records=len(records), total=total, paid=paid, pending=total - paid)
