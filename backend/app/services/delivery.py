"""Delivery confirmation recording.

The stored status has two values: ``completed`` covers both exact and
over-delivery, ``partial`` a shortfall. The exact outcome is recoverable from
the two stored quantities (see ``DeliveryConfirmation.variance``).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConcurrentModification, InvalidQuantity, NotFound, ValidationError
from app.db.session import atomic
from app.models.delivery import DeliveryConfirmation, DeliveryStatus
from app.models.order import Order, OrderStatus
from app.models.staff import StaffMember

logger = logging.getLogger(__name__)

CONFIRMABLE_STATUSES = {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}


@dataclass(frozen=True)
class DeliveryData:
    """What the courier reports when handing an order over."""

    quantity: int
    notes: str = ""


def derive_delivery_status(delivered_quantity: int, ordered_quantity: int) -> DeliveryStatus:
    if delivered_quantity >= ordered_quantity:
        return DeliveryStatus.COMPLETED
    return DeliveryStatus.PARTIAL


def get_confirmation(db: Session, order_id: int) -> Optional[DeliveryConfirmation]:
    return db.scalar(
        select(DeliveryConfirmation).where(DeliveryConfirmation.order_id == order_id)
    )


def list_confirmations(db: Session, limit: int = 500) -> List[DeliveryConfirmation]:
    return list(db.scalars(
        select(DeliveryConfirmation)
        .order_by(DeliveryConfirmation.delivery_date.desc(), DeliveryConfirmation.id.desc())
        .limit(limit)
    ))


def confirm_delivery(
    db: Session,
    order_id: int,
    delivered_quantity: int,
    notes: str = "",
    delivered_by_id: Optional[int] = None,
    *,
    commit: bool = True,
    now: Optional[datetime] = None,
) -> DeliveryConfirmation:
    """Record the delivered quantity for an order.

    ``ordered_quantity`` is snapshotted from the order's items now and never
    re-derived. With ``commit=False`` the row is only flushed so the caller
    can persist it together with the order's status change.
    """
    if delivered_quantity is None or delivered_quantity < 0:
        raise InvalidQuantity(
            f"delivered quantity must be 0 or more, got {delivered_quantity}",
            field="delivered_quantity", order_id=order_id,
        )

    order = db.get(Order, order_id)
    if order is None:
        raise NotFound("Order", order_id)
    if order.status not in CONFIRMABLE_STATUSES:
        raise ValidationError(
            f"Order {order.order_number} is {order.status.value}; only orders out for delivery can be confirmed",
            order_id=order_id, status=order.status.value,
        )
    if get_confirmation(db, order_id) is not None:
        raise ValidationError(
            f"Delivery for order {order.order_number} is already confirmed",
            order_id=order_id,
        )
    if delivered_by_id is not None and db.get(StaffMember, delivered_by_id) is None:
        raise NotFound("StaffMember", delivered_by_id)

    ordered_quantity = order.total_quantity
    confirmation = DeliveryConfirmation(
        order_id=order.id,
        delivered_quantity=delivered_quantity,
        ordered_quantity=ordered_quantity,
        delivery_notes=notes or "",
        delivered_by_id=delivered_by_id,
        delivery_date=now or datetime.now(timezone.utc),
        delivery_status=derive_delivery_status(delivered_quantity, ordered_quantity),
    )

    if not commit:
        _insert_confirmation(db, confirmation, order)
        return confirmation

    with atomic(db, "confirm_delivery", order_id=order_id):
        _insert_confirmation(db, confirmation, order)
    db.refresh(confirmation)
    logger.info(
        f"Delivery confirmed for order {order.order_number}: "
        f"{delivered_quantity}/{ordered_quantity} ({confirmation.delivery_status.value})"
    )
    return confirmation


def _insert_confirmation(db: Session, confirmation: DeliveryConfirmation, order: Order) -> None:
    """Flush the confirmation; losing the one-per-order race is a conflict, not a storage fault."""
    db.add(confirmation)
    try:
        db.flush()
    except IntegrityError as e:
        logger.warning(f"Delivery for order {order.order_number} was confirmed concurrently")
        raise ConcurrentModification(
            f"Delivery for order {order.order_number} was confirmed concurrently; reload and retry",
            order_id=order.id,
        ) from e
