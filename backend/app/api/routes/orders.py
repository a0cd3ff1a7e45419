"""Order routes: creation, status transitions, staff assignment and delivery.

Committed changes reach websocket clients on the ``orders`` channel through
the order_events subscriber registered at startup.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser
from app.db.session import DbSession
from app.models.order import OrderStatus
from app.schemas.delivery import DeliveryConfirmationResponse, DeliveryConfirmRequest
from app.schemas.order import (
    OrderAssignRequest,
    OrderCreate,
    OrderEventResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from app.services import delivery, order_events, order_lifecycle
from app.services.delivery import DeliveryData
from app.services.order_lifecycle import OrderLine


router = APIRouter()


@router.get("/", response_model=list[OrderResponse])
@limiter.limit("60/minute")
def list_orders(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    status: Optional[OrderStatus] = None,
    assigned_staff_id: Optional[int] = None,
):
    """List orders, newest first, optionally only those assigned to one staff member."""
    return order_lifecycle.list_orders(db, status=status, assigned_staff_id=assigned_staff_id)


@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
def get_order(request: Request, order_id: int, db: DbSession, current_user: CurrentUser):
    return order_lifecycle.get_order(db, order_id)


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_order(
    request: Request, body: OrderCreate, db: DbSession, current_user: CurrentUser
):
    """Place a new pending order."""
    return order_lifecycle.create_order(
        db,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        customer_email=body.customer_email,
        delivery_address=body.delivery_address,
        items=[OrderLine(recipe_id=i.recipe_id, quantity=i.quantity, price=i.price) for i in body.items],
        priority=body.priority,
        estimated_delivery=body.estimated_delivery,
        special_instructions=body.special_instructions,
        payment_method=body.payment_method,
        order_source=body.order_source,
        assigned_staff_id=body.assigned_staff_id,
    )


@router.patch("/{order_id}/status", response_model=OrderResponse)
@limiter.limit("30/minute")
def update_order_status(
    request: Request, order_id: int, body: OrderStatusUpdate, db: DbSession, current_user: CurrentUser
):
    """Move an order along its lifecycle.

    409 when the target status is not reachable or the order changed
    concurrently. A delivery confirmation is written together with the
    ``delivered`` status when ``delivery_data`` is sent.
    """
    delivery_data = None
    if body.delivery_data is not None:
        delivery_data = DeliveryData(quantity=body.delivery_data.quantity, notes=body.delivery_data.notes)

    return order_lifecycle.transition(
        db,
        order_id,
        body.status,
        actor_id=body.actor_id,
        delivery_data=delivery_data,
        expected_version=body.expected_version,
    )


@router.patch("/{order_id}/assign", response_model=OrderResponse)
@limiter.limit("30/minute")
def assign_order(
    request: Request, order_id: int, body: OrderAssignRequest, db: DbSession, current_user: CurrentUser
):
    """Set or clear the staff member responsible for an order."""
    return order_lifecycle.assign_staff(db, order_id, body.staff_id, expected_version=body.expected_version)


@router.get("/{order_id}/delivery", response_model=DeliveryConfirmationResponse)
@limiter.limit("60/minute")
def get_order_delivery(request: Request, order_id: int, db: DbSession, current_user: CurrentUser):
    order_lifecycle.get_order(db, order_id)
    confirmation = delivery.get_confirmation(db, order_id)
    if confirmation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delivery confirmation not found")
    return confirmation


@router.post(
    "/{order_id}/delivery",
    response_model=DeliveryConfirmationResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def confirm_order_delivery(
    request: Request, order_id: int, body: DeliveryConfirmRequest, db: DbSession, current_user: CurrentUser
):
    """Record the delivered quantity for an order already on its way or delivered."""
    return delivery.confirm_delivery(
        db, order_id, body.quantity, body.notes, delivered_by_id=body.delivered_by_id
    )


@router.get("/{order_id}/events", response_model=list[OrderEventResponse])
@limiter.limit("60/minute")
def list_order_events(request: Request, order_id: int, db: DbSession, current_user: CurrentUser):
    """Change history of an order, oldest first."""
    order_lifecycle.get_order(db, order_id)
    return order_events.list_events(db, order_id)
