"""Staff routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser, RequireManager
from app.db.session import DbSession
from app.models.staff import StaffMember, department_for_role
from app.schemas.staff import StaffCreate, StaffResponse, StaffUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_staff(db, staff_id: int) -> StaffMember:
    member = db.query(StaffMember).filter(StaffMember.id == staff_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")
    return member


@router.get("/", response_model=list[StaffResponse])
@limiter.limit("60/minute")
def list_staff(request: Request, db: DbSession, current_user: CurrentUser, active_only: bool = True):
    query = db.query(StaffMember)
    if active_only:
        query = query.filter(StaffMember.is_active.is_(True))
    return query.order_by(StaffMember.name).limit(500).all()


@router.get("/{staff_id}", response_model=StaffResponse)
@limiter.limit("60/minute")
def get_staff(request: Request, staff_id: int, db: DbSession, current_user: CurrentUser):
    return _get_staff(db, staff_id)


@router.post("/", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_staff(request: Request, body: StaffCreate, db: DbSession, current_user: RequireManager):
    """Add a staff member (requires Manager role)."""
    data = body.model_dump()
    data["department"] = data.get("department") or department_for_role(body.role)
    member = StaffMember(**data)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Staff member {member.id} '{member.name}' ({member.role.value}) added by {current_user.email}")
    return member


@router.put("/{staff_id}", response_model=StaffResponse)
@limiter.limit("30/minute")
def update_staff(request: Request, staff_id: int, body: StaffUpdate, db: DbSession, current_user: RequireManager):
    """Update a staff member; a role change moves them to that role's department."""
    member = _get_staff(db, staff_id)

    update_data = body.model_dump(exclude_unset=True)
    if "role" in update_data and "department" not in update_data:
        update_data["department"] = department_for_role(update_data["role"])
    for field, value in update_data.items():
        setattr(member, field, value)

    db.commit()
    db.refresh(member)
    return member


@router.delete("/{staff_id}", response_model=StaffResponse)
@limiter.limit("30/minute")
def deactivate_staff(request: Request, staff_id: int, db: DbSession, current_user: RequireManager):
    """Deactivate a staff member. Orders and payroll keep pointing at them."""
    member = _get_staff(db, staff_id)
    member.is_active = False
    db.commit()
    db.refresh(member)
    logger.info(f"Staff member {staff_id} deactivated by {current_user.email}")
    return member
