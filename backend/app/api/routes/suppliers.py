"""Supplier routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser, RequireManager
from app.db.session import DbSession
from app.models.supplier import Supplier
from app.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_supplier(db, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return supplier


@router.get("/", response_model=list[SupplierResponse])
@limiter.limit("60/minute")
def list_suppliers(request: Request, db: DbSession, current_user: CurrentUser, active_only: bool = False):
    """List all suppliers."""
    query = db.query(Supplier)
    if active_only:
        query = query.filter(Supplier.is_active.is_(True))
    return query.order_by(Supplier.name).limit(500).all()


@router.get("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("60/minute")
def get_supplier(request: Request, supplier_id: int, db: DbSession, current_user: CurrentUser):
    """Get a specific supplier."""
    return _get_supplier(db, supplier_id)


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_supplier(request: Request, body: SupplierCreate, db: DbSession, current_user: CurrentUser):
    """Create a new supplier."""
    supplier = Supplier(**body.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info(f"Supplier {supplier.id} '{supplier.name}' created by {current_user.email}")
    return supplier


@router.put("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("30/minute")
def update_supplier(
    request: Request, supplier_id: int, body: SupplierUpdate, db: DbSession, current_user: CurrentUser
):
    """Update a supplier."""
    supplier = _get_supplier(db, supplier_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(supplier, field, value)

    db.commit()
    db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_supplier(request: Request, supplier_id: int, db: DbSession, current_user: RequireManager):
    """Delete a supplier (requires Manager role). Its items keep existing without a supplier."""
    supplier = _get_supplier(db, supplier_id)
    db.delete(supplier)
    db.commit()
    logger.info(f"Supplier {supplier_id} deleted by {current_user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
