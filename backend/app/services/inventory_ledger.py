"""Inventory Ledger - applies stock movements to inventory items.

Every stock change is an append-only StockMovement row. The matching change
to ``InventoryItem.current_stock`` is written in the same transaction as a
single SQL expression (``current_stock = current_stock + delta``), so two
concurrent movements against one item can never lose an update.

Rules:
- ``in`` adds the quantity.
- ``out`` subtracts it but never goes below zero; an oversized ``out``
  clamps to 0 instead of failing.
- quantity must be > 0.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidQuantity, NotFound, ValidationError
from app.db.session import atomic
from app.models.inventory import InventoryItem
from app.models.stock import MovementType, StockMovement

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _movement_type(value) -> MovementType:
    try:
        return MovementType(value)
    except ValueError:
        raise ValidationError(
            f"movement_type must be one of {[m.value for m in MovementType]}, got {value!r}",
            field="movement_type",
        )


def _quantity(value) -> Decimal:
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"quantity must be a number, got {value!r}", field="quantity")
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidQuantity(f"quantity must be greater than 0, got {value}", field="quantity")
    return quantity


def next_stock(current: Decimal, movement_type: MovementType, quantity: Decimal) -> Decimal:
    """Stock level after applying one movement."""
    if MovementType(movement_type) is MovementType.IN:
        return current + quantity
    return max(ZERO, current - quantity)


def _stock_expression(movement_type: MovementType, quantity: Decimal):
    """SQL form of ``next_stock`` evaluated against the row's current value."""
    if movement_type is MovementType.IN:
        return InventoryItem.current_stock + quantity
    return case(
        (InventoryItem.current_stock > quantity, InventoryItem.current_stock - quantity),
        else_=ZERO,
    )


def get_item(db: Session, item_id: int) -> InventoryItem:
    item = db.scalar(
        select(InventoryItem).where(InventoryItem.id == item_id, InventoryItem.not_deleted())
    )
    if item is None:
        raise NotFound("InventoryItem", item_id)
    return item


def list_low_stock(db: Session, threshold: Optional[Decimal] = None) -> List[InventoryItem]:
    """Items at or below ``threshold``, or their own minimum stock when no threshold is given."""
    limit = InventoryItem.min_stock if threshold is None else Decimal(str(threshold))
    return list(db.scalars(
        select(InventoryItem)
        .where(InventoryItem.not_deleted(), InventoryItem.current_stock <= limit)
        .order_by(InventoryItem.name)
    ))


def list_movements(db: Session, inventory_item_id: Optional[int] = None, limit: int = 500) -> List[StockMovement]:
    """Ledger entries, newest first."""
    stmt = select(StockMovement).order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    if inventory_item_id is not None:
        stmt = stmt.where(StockMovement.inventory_item_id == inventory_item_id)
    return list(db.scalars(stmt.limit(limit)))


def post_movement(
    db: Session,
    item: InventoryItem,
    movement_type: MovementType,
    quantity: Decimal,
    reason: str,
    performed_by: str,
    *,
    reference_number: Optional[str] = None,
    unit_cost=ZERO,
    total_cost=ZERO,
    notes: str = "",
    movement_date: Optional[datetime] = None,
) -> StockMovement:
    """Add a movement and its stock change to the caller's transaction without committing."""
    movement_date = movement_date or datetime.now(timezone.utc)
    movement = StockMovement(
        inventory_item_id=item.id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason.strip(),
        reference_number=reference_number,
        unit_cost=unit_cost,
        total_cost=total_cost,
        performed_by=performed_by,
        notes=notes or "",
        movement_date=movement_date,
    )
    db.add(movement)
    db.flush()

    values = {"current_stock": _stock_expression(movement_type, quantity)}
    if movement_type is MovementType.IN:
        values["last_restocked"] = movement_date
    db.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item.id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return movement


def apply_movement(
    db: Session,
    inventory_item_id: int,
    movement_type,
    quantity,
    reason: str,
    performed_by: str,
    *,
    reference_number: Optional[str] = None,
    unit_cost=ZERO,
    total_cost=ZERO,
    notes: str = "",
    movement_date: Optional[datetime] = None,
) -> Tuple[StockMovement, InventoryItem]:
    """Record a stock movement and apply it to its item atomically.

    Raises:
        InvalidQuantity: quantity is zero or negative.
        ValidationError: unknown movement type or empty reason.
        NotFound: the item does not exist or was deleted.
        StorageError: the write failed; neither row was persisted.
    """
    kind = _movement_type(movement_type)
    qty = _quantity(quantity)
    if not reason or not reason.strip():
        raise ValidationError("reason is required", field="reason")

    with atomic(db, "apply_movement", inventory_item_id=inventory_item_id):
        item = get_item(db, inventory_item_id)
        movement = post_movement(
            db, item, kind, qty, reason, performed_by,
            reference_number=reference_number,
            unit_cost=unit_cost,
            total_cost=total_cost,
            notes=notes,
            movement_date=movement_date,
        )

    db.refresh(item)
    db.refresh(movement)
    logger.info(
        f"Stock movement {movement.id}: {kind.value} {qty} {item.unit} of '{item.name}' "
        f"(item {item.id}) -> {item.current_stock}"
    )
    return movement, item
