"""Purchase orders - ordering raw materials from suppliers and receiving them.

    pending -> ordered -> received
        \\         \\
         +---------+-----> cancelled

A pending order may also be received directly (goods bought at the market
door). Receiving posts one ``in`` movement per line to the inventory ledger
in the same transaction as the status change, and the status write is a
conditional UPDATE so an order can never be received twice.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ConcurrentModification,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from app.db.session import atomic
from app.models.purchase import PurchaseOrder, PurchaseOrderLine, PurchaseOrderStatus
from app.models.stock import MovementType
from app.models.supplier import Supplier
from app.services import inventory_ledger

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[PurchaseOrderStatus, FrozenSet[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.PENDING: frozenset({
        PurchaseOrderStatus.ORDERED, PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED,
    }),
    PurchaseOrderStatus.ORDERED: frozenset({PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED}),
    PurchaseOrderStatus.RECEIVED: frozenset(),
    PurchaseOrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class PurchaseLine:
    inventory_item_id: int
    quantity: Decimal
    unit_cost: Decimal = Decimal("0")


def _status(value: Union[str, PurchaseOrderStatus]) -> PurchaseOrderStatus:
    try:
        return PurchaseOrderStatus(value)
    except ValueError:
        raise ValidationError(
            f"status must be one of {[s.value for s in PurchaseOrderStatus]}, got {value!r}",
            field="status",
        )


def get_purchase_order(db: Session, purchase_order_id: int) -> PurchaseOrder:
    po = db.get(PurchaseOrder, purchase_order_id)
    if po is None:
        raise NotFound("PurchaseOrder", purchase_order_id)
    return po


def list_purchase_orders(
    db: Session,
    status: Optional[Union[str, PurchaseOrderStatus]] = None,
    supplier_id: Optional[int] = None,
    limit: int = 500,
) -> List[PurchaseOrder]:
    """Purchase orders, newest first."""
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
    if status is not None:
        stmt = stmt.where(PurchaseOrder.status == _status(status))
    if supplier_id is not None:
        stmt = stmt.where(PurchaseOrder.supplier_id == supplier_id)
    return list(db.scalars(stmt.limit(limit)))


def create_purchase_order(
    db: Session,
    supplier_id: int,
    lines: Iterable[PurchaseLine],
    *,
    order_date: Optional[date] = None,
    expected_delivery: Optional[date] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> PurchaseOrder:
    """Place a pending purchase order; ``total_amount`` is the sum of its lines."""
    if db.get(Supplier, supplier_id) is None:
        raise NotFound("Supplier", supplier_id)

    order_date = order_date or datetime.now(timezone.utc).date()
    if expected_delivery is not None and expected_delivery < order_date:
        raise ValidationError(
            f"expected_delivery {expected_delivery} is before order_date {order_date}",
            field="expected_delivery",
        )

    po_lines = []
    for line in lines:
        quantity = Decimal(str(line.quantity))
        unit_cost = Decimal(str(line.unit_cost))
        if quantity <= 0:
            raise InvalidQuantity(
                f"line quantity must be greater than 0, got {line.quantity}",
                field="quantity", inventory_item_id=line.inventory_item_id,
            )
        if unit_cost < 0:
            raise ValidationError(f"unit_cost cannot be negative, got {unit_cost}", field="unit_cost")
        inventory_ledger.get_item(db, line.inventory_item_id)
        po_lines.append(PurchaseOrderLine(
            inventory_item_id=line.inventory_item_id, quantity=quantity, unit_cost=unit_cost,
        ))
    if not po_lines:
        raise ValidationError("a purchase order needs at least one line", field="lines")

    po = PurchaseOrder(
        supplier_id=supplier_id,
        status=PurchaseOrderStatus.PENDING,
        order_date=order_date,
        expected_delivery=expected_delivery,
        total_amount=sum((line.line_total for line in po_lines), Decimal("0")),
        notes=notes,
        created_by=created_by,
        lines=po_lines,
    )
    with atomic(db, "create_purchase_order", supplier_id=supplier_id):
        db.add(po)
    db.refresh(po)
    logger.info(
        f"Purchase order {po.reference} placed with supplier {supplier_id}: "
        f"{len(po_lines)} lines, total {po.total_amount}"
    )
    return po


def _move(db: Session, po: PurchaseOrder, target: PurchaseOrderStatus, expected_version: Optional[int], **values):
    """Conditionally write ``target``; callers run this inside their transaction."""
    po.check_version(expected_version)
    current = po.status
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current.value, target.value, purchase_order_id=po.id)

    seen_version = po.version
    result = db.execute(
        update(PurchaseOrder)
        .where(PurchaseOrder.id == po.id, PurchaseOrder.version == seen_version, PurchaseOrder.status == current)
        .values(status=target, version=PurchaseOrder.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrentModification(
            f"Purchase order {po.reference} was modified concurrently; reload and retry",
            purchase_order_id=po.id, seen_version=seen_version,
        )


def mark_ordered(db: Session, purchase_order_id: int, expected_version: Optional[int] = None) -> PurchaseOrder:
    po = get_purchase_order(db, purchase_order_id)
    with atomic(db, "mark_ordered", purchase_order_id=purchase_order_id):
        _move(db, po, PurchaseOrderStatus.ORDERED, expected_version)
    db.refresh(po)
    logger.info(f"Purchase order {po.reference} sent to supplier")
    return po


def cancel(db: Session, purchase_order_id: int, expected_version: Optional[int] = None) -> PurchaseOrder:
    po = get_purchase_order(db, purchase_order_id)
    with atomic(db, "cancel_purchase_order", purchase_order_id=purchase_order_id):
        _move(db, po, PurchaseOrderStatus.CANCELLED, expected_version)
    db.refresh(po)
    logger.info(f"Purchase order {po.reference} cancelled")
    return po


def receive(
    db: Session,
    purchase_order_id: int,
    performed_by: str,
    *,
    received_quantities: Optional[Mapping[int, Decimal]] = None,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PurchaseOrder:
    """Mark the order received and book its goods into inventory.

    ``received_quantities`` maps line ids to the quantity actually received;
    lines not listed are received in full and lines received as 0 post no
    movement.
    """
    if not performed_by or not performed_by.strip():
        raise ValidationError("performed_by is required", field="performed_by")
    received_quantities = received_quantities or {}

    po = get_purchase_order(db, purchase_order_id)
    unknown = set(received_quantities) - {line.id for line in po.lines}
    if unknown:
        raise ValidationError(
            f"Lines {sorted(unknown)} are not on purchase order {po.reference}",
            field="received_quantities",
        )
    quantities = {}
    for line in po.lines:
        quantity = Decimal(str(received_quantities.get(line.id, line.quantity)))
        if quantity < 0:
            raise InvalidQuantity(
                f"received quantity cannot be negative, got {quantity}", field="received_quantities", line_id=line.id,
            )
        quantities[line.id] = quantity

    received_at = now or datetime.now(timezone.utc)
    with atomic(db, "receive_purchase_order", purchase_order_id=purchase_order_id):
        _move(db, po, PurchaseOrderStatus.RECEIVED, expected_version, received_at=received_at)
        for line in po.lines:
            quantity = quantities[line.id]
            if quantity == 0:
                continue
            inventory_ledger.post_movement(
                db,
                inventory_ledger.get_item(db, line.inventory_item_id),
                MovementType.IN,
                quantity,
                "Purchase order received",
                performed_by,
                reference_number=po.reference,
                unit_cost=line.unit_cost,
                total_cost=quantity * line.unit_cost,
                movement_date=received_at,
            )

    db.refresh(po)
    booked = sum(1 for q in quantities.values() if q > 0)
    logger.info(f"Purchase order {po.reference} received by {performed_by}: {booked} lines booked into stock")
    return po
