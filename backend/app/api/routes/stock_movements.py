"""Stock movement routes: the inventory ledger over HTTP."""

from typing import Optional

from fastapi import APIRouter, Request, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser
from app.db.session import DbSession
from app.schemas.stock import StockMovementCreate, StockMovementResponse
from app.services import inventory_ledger

router = APIRouter()


@router.get("/", response_model=list[StockMovementResponse])
@limiter.limit("60/minute")
def list_movements(
    request: Request, db: DbSession, current_user: CurrentUser, inventory_item_id: Optional[int] = None
):
    """Ledger entries, newest first."""
    return inventory_ledger.list_movements(db, inventory_item_id=inventory_item_id)


@router.post("/", response_model=StockMovementResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_movement(request: Request, body: StockMovementCreate, db: DbSession, current_user: CurrentUser):
    """Record a movement and apply it to the item's stock in one transaction.

    400 for an invalid body, 404 for an unknown item and 500 when the write
    fails, in which case neither the movement nor the stock change is kept.
    """
    movement, _ = inventory_ledger.apply_movement(
        db,
        body.inventory_item_id,
        body.movement_type,
        body.quantity,
        body.reason,
        body.performed_by,
        reference_number=body.reference_number,
        unit_cost=body.unit_cost,
        total_cost=body.total_cost,
        notes=body.notes,
        movement_date=body.movement_date,
    )
    return movement
