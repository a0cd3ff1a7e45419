"""Payroll routes (Manager role for every change)."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from app.core.rate_limit import limiter
from app.core.rbac import RequireManager
from app.db.session import DbSession
from app.schemas.payroll import (
    MONTH_REGEX,
    PayrollGenerateRequest,
    PayrollRecordResponse,
    PayrollSummaryResponse,
    PayrollUpdate,
)
from app.services import payroll

router = APIRouter()


@router.get("/", response_model=list[PayrollRecordResponse])
@limiter.limit("60/minute")
def list_payroll(
    request: Request, db: DbSession, current_user: RequireManager,
    month: Optional[str] = Query(None, pattern=MONTH_REGEX),
):
    return payroll.list_records(db, month)


@router.get("/summary", response_model=PayrollSummaryResponse)
@limiter.limit("60/minute")
def payroll_summary(
    request: Request, db: DbSession, current_user: RequireManager,
    month: Optional[str] = Query(None, pattern=MONTH_REGEX),
):
    """Total, paid and pending net salary."""
    return payroll.summarize(payroll.list_records(db, month), month=month)


@router.post("/generate", response_model=list[PayrollRecordResponse])
@limiter.limit("30/minute")
def generate_payroll(request: Request, body: PayrollGenerateRequest, db: DbSession, current_user: RequireManager):
    """Create pending records at base salary for all active staff for a month."""
    return payroll.generate_month(db, body.month)


@router.put("/{record_id}", response_model=PayrollRecordResponse)
@limiter.limit("30/minute")
def update_payroll(
    request: Request, record_id: int, body: PayrollUpdate, db: DbSession, current_user: RequireManager
):
    """Adjust overtime, bonus or deductions, or mark paid."""
    return payroll.update_record(db, record_id, **body.model_dump(exclude_unset=True))
