"""Order Lifecycle - order creation and status transitions.

State machine:

    pending -> cooking -> out_for_delivery -> delivered
        \\          \\               \\
         +----------+---------------+-----> cancelled

``delivered`` and ``cancelled`` are terminal. A transition to ``delivered``
that carries delivery data writes the DeliveryConfirmation in the same
transaction as the status change.

Concurrent transitions on one order are serialized with an optimistic
version check: the status write is a conditional
``UPDATE ... WHERE version = :seen AND status = :seen_status``. If another
writer got there first, nothing is applied and ConcurrentModification is
raised.

Delivering an order does not touch inventory; stock is managed separately
through the inventory ledger.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

import pytz
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    ConcurrentModification,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
    StorageError,
    ValidationError,
)
from app.db.session import atomic
from app.models.order import Order, OrderItem, OrderPriority, OrderSource, OrderStatus
from app.models.recipe import Recipe
from app.models.staff import StaffMember
from app.services import order_events
from app.services.delivery import DeliveryData, confirm_delivery

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.COOKING, OrderStatus.CANCELLED}),
    OrderStatus.COOKING: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if not nxt)


@dataclass(frozen=True)
class OrderLine:
    """Requested dish line; ``price`` defaults to the recipe's menu price."""

    recipe_id: int
    quantity: int
    price: Optional[Decimal] = None


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return OrderStatus(new) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def _status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(
            f"status must be one of {[s.value for s in OrderStatus]}, got {value!r}",
            field="status",
        )


def format_order_number(day: Union[date, datetime], sequence: int) -> str:
    return f"ORD-{day:%Y%m%d}-{sequence:03d}"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def local_order_day(moment: datetime) -> date:
    """Calendar day of ``moment`` in the kitchen's configured timezone."""
    return _as_utc(moment).astimezone(pytz.timezone(settings.order_timezone)).date()


def _day_bounds(moment: datetime):
    """UTC start and end of the local day containing ``moment``."""
    tz = pytz.timezone(settings.order_timezone)
    day = local_order_day(moment)
    start = tz.localize(datetime.combine(day, time.min)).astimezone(timezone.utc)
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min)).astimezone(timezone.utc)
    return start, end


def count_orders_on_day(db: Session, moment: datetime) -> int:
    start, end = _day_bounds(moment)
    return db.scalar(
        select(func.count(Order.id)).where(Order.order_time >= start, Order.order_time < end)
    ) or 0


def _get_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound("Order", order_id)
    return order


def _require_staff(db: Session, staff_id: Optional[int]) -> None:
    if staff_id is not None and db.get(StaffMember, staff_id) is None:
        raise NotFound("StaffMember", staff_id)


def _price_lines(db: Session, lines: Iterable[OrderLine]) -> List[OrderLine]:
    priced = []
    for line in lines:
        if not isinstance(line.quantity, int) or line.quantity <= 0:
            raise InvalidQuantity(
                f"item quantity must be a positive whole number, got {line.quantity}",
                field="quantity", recipe_id=line.recipe_id,
            )
        recipe = db.get(Recipe, line.recipe_id)
        if recipe is None:
            raise NotFound("Recipe", line.recipe_id)
        price = recipe.price if line.price is None else Decimal(str(line.price))
        if price < 0:
            raise ValidationError(f"price cannot be negative, got {price}", field="price")
        priced.append(OrderLine(recipe_id=recipe.id, quantity=line.quantity, price=price))
    if not priced:
        raise ValidationError("an order needs at least one item", field="items")
    return priced


def create_order(
    db: Session,
    *,
    customer_name: str,
    customer_phone: str,
    delivery_address: str,
    items: Iterable[OrderLine],
    customer_email: Optional[str] = None,
    priority: Union[str, OrderPriority] = OrderPriority.NORMAL,
    estimated_delivery: Optional[datetime] = None,
    special_instructions: Optional[str] = None,
    payment_method: str = "cash",
    order_source: Union[str, OrderSource] = OrderSource.ADMIN,
    assigned_staff_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Create a pending order numbered ``ORD-YYYYMMDD-NNN``.

    The date is the local day in ``settings.order_timezone`` and NNN is the
    count of orders already placed that local day plus one. The order
    number column is unique; if another order took the number in the
    meantime the insert is retried with the next sequence number.
    """
    for field_name, value in (
        ("customer_name", customer_name),
        ("customer_phone", customer_phone),
        ("delivery_address", delivery_address),
    ):
        if not value or not value.strip():
            raise ValidationError(f"{field_name} is required", field=field_name)

    lines = _price_lines(db, items)
    _require_staff(db, assigned_staff_id)
    total_amount = sum((line.price * line.quantity for line in lines), Decimal("0"))
    order_time = _as_utc(now or datetime.now(timezone.utc))
    order_day = local_order_day(order_time)

    attempts = settings.order_number_max_attempts
    for attempt in range(1, attempts + 1):
        order_number = format_order_number(order_day, count_orders_on_day(db, order_time) + attempt)
        order = Order(
            order_number=order_number,
            customer_name=customer_name.strip(),
            customer_phone=customer_phone.strip(),
            customer_email=customer_email,
            delivery_address=delivery_address.strip(),
            status=OrderStatus.PENDING,
            priority=OrderPriority(priority),
            order_time=order_time,
            estimated_delivery=estimated_delivery,
            total_amount=total_amount,
            assigned_staff_id=assigned_staff_id,
            special_instructions=special_instructions,
            payment_method=payment_method,
            order_source=OrderSource(order_source),
            items=[
                OrderItem(recipe_id=line.recipe_id, quantity=line.quantity, price=line.price)
                for line in lines
            ],
        )
        db.add(order)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Order number {order_number} already taken (attempt {attempt}/{attempts})")
            continue

        notification = order_events.OrderNotification(
            event_type=order_events.ORDER_CREATED,
            order_id=order.id,
            order_number=order.order_number,
            status=order.status.value,
            occurred_at=order_time,
            actor_id=assigned_staff_id,
            version=order.version,
        )
        try:
            order_events.record(db, notification)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"create_order failed, rolled back: {e}", exc_info=True)
            raise StorageError("create_order failed", operation="create_order") from e

        db.refresh(order)
        logger.info(
            f"Order {order.order_number} created for {order.customer_name} "
            f"({len(lines)} lines, total {order.total_amount})"
        )
        order_events.publish(notification)
        return order

    raise StorageError(
        f"Could not allocate a unique order number after {attempts} attempts",
        operation="create_order",
    )


def transition(
    db: Session,
    order_id: int,
    new_status: Union[str, OrderStatus],
    actor_id: Optional[int] = None,
    delivery_data: Optional[DeliveryData] = None,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Move an order to ``new_status``.

    Args:
        order_id: Order to move.
        new_status: Target status; must be adjacent to the current one.
        actor_id: Staff member performing the change; becomes the assignee.
        delivery_data: Delivered quantity and notes, recorded when moving to
            ``delivered``.
        expected_version: Version the caller last saw; a mismatch is
            rejected as a concurrent modification.

    Raises:
        ValidationError / InvalidQuantity: bad status value or delivery data.
        NotFound: unknown order or staff member.
        InvalidTransition: the target is not reachable from the current status.
        ConcurrentModification: the order changed since it was read.
        StorageError: the write failed; nothing was applied.
    """
    target = _status(new_status)
    order = _get_order(db, order_id)
    order.check_version(expected_version)

    current = order.status
    if not can_transition(current, target):
        logger.warning(
            f"Rejected transition of order {order.order_number}: {current.value} -> {target.value}"
        )
        raise InvalidTransition(current.value, target.value, order_id=order_id)
    _require_staff(db, actor_id)

    seen_version = order.version
    occurred_at = now or datetime.now(timezone.utc)

    with atomic(db, "transition", order_id=order_id, requested=target.value):
        # The conditional UPDATE goes first so a losing writer stops here
        # before any delivery row is written.
        values = {"status": target, "version": Order.version + 1}
        if actor_id is not None:
            values["assigned_staff_id"] = actor_id
        result = db.execute(
            update(Order)
            .where(Order.id == order.id, Order.version == seen_version, Order.status == current)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Version conflict on order {order.order_number} (seen version {seen_version})")
            raise ConcurrentModification(
                f"Order {order.order_number} was modified concurrently; reload and retry",
                order_id=order_id, seen_version=seen_version,
            )

        if target is OrderStatus.DELIVERED and delivery_data is not None:
            confirm_delivery(
                db,
                order.id,
                delivery_data.quantity,
                delivery_data.notes,
                delivered_by_id=actor_id,
                commit=False,
                now=occurred_at,
            )

        notification = order_events.OrderNotification(
            event_type=order_events.STATUS_CHANGED,
            order_id=order.id,
            order_number=order.order_number,
            status=target.value,
            previous_status=current.value,
            occurred_at=occurred_at,
            actor_id=actor_id,
            version=seen_version + 1,
        )
        order_events.record(db, notification)

    db.refresh(order)
    logger.info(
        f"Order {order.order_number}: {current.value} -> {target.value}"
        + (f" by staff {actor_id}" if actor_id is not None else "")
    )
    order_events.publish(notification)
    return order


def assign_staff(
    db: Session,
    order_id: int,
    staff_id: Optional[int],
    expected_version: Optional[int] = None,
) -> Order:
    """Set or clear the staff member responsible for an open order."""
    order = _get_order(db, order_id)
    order.check_version(expected_version)
    if order.status in TERMINAL_STATUSES:
        raise ValidationError(
            f"Order {order.order_number} is {order.status.value} and can no longer be reassigned",
            order_id=order_id,
        )
    _require_staff(db, staff_id)

    seen_version = order.version
    with atomic(db, "assign_staff", order_id=order_id):
        result = db.execute(
            update(Order)
            .where(Order.id == order.id, Order.version == seen_version)
            .values(assigned_staff_id=staff_id, version=Order.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentModification(
                f"Order {order.order_number} was modified concurrently; reload and retry",
                order_id=order_id, seen_version=seen_version,
            )

        notification = order_events.OrderNotification(
            event_type=order_events.ORDER_ASSIGNED,
            order_id=order.id,
            order_number=order.order_number,
            status=order.status.value,
            occurred_at=datetime.now(timezone.utc),
            actor_id=staff_id,
            version=seen_version + 1,
        )
        order_events.record(db, notification)

    db.refresh(order)
    logger.info(f"Order {order.order_number} assigned to staff {staff_id}")
    order_events.publish(notification)
    return order


def list_orders(
    db: Session,
    status: Optional[Union[str, OrderStatus]] = None,
    assigned_staff_id: Optional[int] = None,
    limit: int = 500,
) -> List[Order]:
    """Orders, newest first."""
    stmt = select(Order).order_by(Order.order_time.desc(), Order.id.desc())
    if status is not None:
        stmt = stmt.where(Order.status == _status(status))
    if assigned_staff_id is not None:
        stmt = stmt.where(Order.assigned_staff_id == assigned_staff_id)
    return list(db.scalars(stmt.limit(limit)))


def get_order(db: Session, order_id: int) -> Order:
    return _get_order(db, order_id)
