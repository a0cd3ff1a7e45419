"""Inventory item routes.

Stock levels are read here but only changed through ``/stock-movements``.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser, RequireManager
from app.db.session import DbSession
from app.models.inventory import InventoryItem
from app.models.supplier import Supplier
from app.schemas.inventory import InventoryItemCreate, InventoryItemResponse, InventoryItemUpdate
from app.services import inventory_ledger

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_supplier(db, supplier_id):
    if supplier_id is not None and db.get(Supplier, supplier_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Supplier {supplier_id} does not exist")


@router.get("/", response_model=list[InventoryItemResponse])
@limiter.limit("60/minute")
def list_items(request: Request, db: DbSession, current_user: CurrentUser, category: str | None = None):
    """List inventory items."""
    query = db.query(InventoryItem).filter(InventoryItem.not_deleted())
    if category:
        query = query.filter(InventoryItem.category == category)
    return query.order_by(InventoryItem.name).limit(500).all()


@router.get("/low-stock", response_model=list[InventoryItemResponse])
@limiter.limit("60/minute")
def list_low_stock(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    threshold: Decimal | None = Query(None, ge=0),
):
    """Items at or below ``threshold``, or their own minimum stock when it is omitted."""
    return inventory_ledger.list_low_stock(db, threshold=threshold)


@router.get("/{item_id}", response_model=InventoryItemResponse)
@limiter.limit("60/minute")
def get_item(request: Request, item_id: int, db: DbSession, current_user: CurrentUser):
    return inventory_ledger.get_item(db, item_id)


@router.post("/", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_item(request: Request, body: InventoryItemCreate, db: DbSession, current_user: CurrentUser):
    """Register an inventory item with its opening stock."""
    _check_supplier(db, body.supplier_id)
    item = InventoryItem(**body.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Inventory item {item.id} '{item.name}' created with {item.current_stock} {item.unit}")
    return item


@router.put("/{item_id}", response_model=InventoryItemResponse)
@limiter.limit("30/minute")
def update_item(request: Request, item_id: int, body: InventoryItemUpdate, db: DbSession, current_user: CurrentUser):
    item = inventory_ledger.get_item(db, item_id)

    update_data = body.model_dump(exclude_unset=True)
    if "supplier_id" in update_data:
        _check_supplier(db, update_data["supplier_id"])
    for field, value in update_data.items():
        setattr(item, field, value)

    db.commit()
    db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_item(request: Request, item_id: int, db: DbSession, current_user: RequireManager):
    """Soft-delete an item; its movement history is kept."""
    item = inventory_ledger.get_item(db, item_id)
    item.soft_delete()
    db.commit()
    logger.info(f"Inventory item {item_id} deleted by {current_user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
