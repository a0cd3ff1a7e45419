"""Purchase order routes: ordering from suppliers and booking deliveries into stock."""

from typing import Optional

from fastapi import APIRouter, Request, status

from app.core.exceptions import ValidationError
from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser, RequireManager
from app.db.session import DbSession
from app.models.purchase import PurchaseOrderStatus
from app.schemas.purchase import (
    PurchaseOrderCreate,
    PurchaseOrderReceive,
    PurchaseOrderResponse,
    PurchaseOrderStatusUpdate,
)
from app.services import purchase_orders
from app.services.purchase_orders import PurchaseLine

router = APIRouter()


@router.get("/", response_model=list[PurchaseOrderResponse])
@limiter.limit("60/minute")
def list_purchase_orders(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    status: Optional[PurchaseOrderStatus] = None,
    supplier_id: Optional[int] = None,
):
    """Purchase orders, newest first."""
    return purchase_orders.list_purchase_orders(db, status=status, supplier_id=supplier_id)


@router.get("/{purchase_order_id}", response_model=PurchaseOrderResponse)
@limiter.limit("60/minute")
def get_purchase_order(request: Request, purchase_order_id: int, db: DbSession, current_user: CurrentUser):
    return purchase_orders.get_purchase_order(db, purchase_order_id)


@router.post("/", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_purchase_order(request: Request, body: PurchaseOrderCreate, db: DbSession, current_user: RequireManager):
    """Place a purchase order with a supplier (requires Manager role)."""
    return purchase_orders.create_purchase_order(
        db,
        body.supplier_id,
        [PurchaseLine(line.inventory_item_id, line.quantity, line.unit_cost) for line in body.lines],
        order_date=body.order_date,
        expected_delivery=body.expected_delivery,
        notes=body.notes,
        created_by=current_user.email,
    )


@router.patch("/{purchase_order_id}/status", response_model=PurchaseOrderResponse)
@limiter.limit("30/minute")
def update_purchase_order_status(
    request: Request,
    purchase_order_id: int,
    body: PurchaseOrderStatusUpdate,
    db: DbSession,
    current_user: RequireManager,
):
    """Send (``ordered``) or cancel a purchase order. Receiving has its own endpoint."""
    if body.status is PurchaseOrderStatus.ORDERED:
        return purchase_orders.mark_ordered(db, purchase_order_id, expected_version=body.expected_version)
    if body.status is PurchaseOrderStatus.CANCELLED:
        return purchase_orders.cancel(db, purchase_order_id, expected_version=body.expected_version)
    raise ValidationError(
        f"status must be 'ordered' or 'cancelled', got '{body.status.value}'; use /receive to receive goods",
        field="status",
    )


@router.post("/{purchase_order_id}/receive", response_model=PurchaseOrderResponse)
@limiter.limit("30/minute")
def receive_purchase_order(
    request: Request,
    purchase_order_id: int,
    body: PurchaseOrderReceive,
    db: DbSession,
    current_user: CurrentUser,
):
    """Mark goods received and add them to inventory in one transaction.

    409 when the order was already received or cancelled.
    """
    return purchase_orders.receive(
        db,
        purchase_order_id,
        body.performed_by,
        received_quantities=body.received_quantities,
        expected_version=body.expected_version,
    )
