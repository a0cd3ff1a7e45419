"""Customer view derived from the order history.

Customers are a read projection: stored ``Customer`` rows are seeds carrying
identity and preferences, and every spend statistic is recomputed from the
orders each time the view is read. ``derive_customers`` is pure; it never
touches the session, so the same inputs always give the same output.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.customer import Customer, CustomerStatus
from app.models.order import Order

logger = logging.getLogger(__name__)

VIP_THRESHOLD = Decimal("5000")
LOYALTY_POINT_VALUE = 10  # currency units per loyalty point
CENT = Decimal("0.01")


@dataclass(frozen=True)
class OrderSnapshot:
    order_id: int
    customer_name: str
    customer_phone: str
    delivery_address: str
    order_time: datetime
    total_amount: Decimal
    status: str
    customer_email: Optional[str] = None

    @classmethod
    def from_model(cls, order: Order) -> "OrderSnapshot":
        return cls(
            order_id=order.id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            delivery_address=order.delivery_address,
            order_time=order.order_time,
            total_amount=Decimal(order.total_amount),
            status=order.status.value,
            customer_email=order.customer_email,
        )


@dataclass(frozen=True)
class CustomerSeed:
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    addresses: Tuple[dict, ...] = ()
    preferences: dict = field(default_factory=dict)
    notes: str = ""
    status: str = CustomerStatus.ACTIVE.value
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, customer: Customer) -> "CustomerSeed":
        return cls(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            addresses=tuple(customer.addresses or ()),
            preferences=dict(customer.preferences or {}),
            notes=customer.notes or "",
            status=customer.status.value,
            created_at=customer.created_at,
        )


@dataclass(frozen=True)
class OrderHistoryEntry:
    order_id: int
    date: datetime
    amount: Decimal
    status: str


@dataclass(frozen=True)
class CustomerSummary:
    id: Optional[int]
    name: str
    phone: str
    email: Optional[str]
    addresses: Tuple[dict, ...]
    preferences: dict
    notes: str
    status: str
    order_history: Tuple[OrderHistoryEntry, ...]
    total_orders: int
    total_spent: Decimal
    average_order_value: Decimal
    loyalty_points: int
    last_order_date: Optional[datetime]
    customer_since: Optional[datetime]


def classify(total_spent: Decimal) -> str:
    """``vip`` strictly above the threshold, ``active`` otherwise."""
    if total_spent > VIP_THRESHOLD:
        return CustomerStatus.VIP.value
    return CustomerStatus.ACTIVE.value


def loyalty_points(total_spent: Decimal) -> int:
    return int(total_spent // LOYALTY_POINT_VALUE)


def _fold(orders: List[OrderSnapshot]):
    """Statistics over one phone's orders, in the order given."""
    history = []
    total_spent = Decimal("0")
    last_order_date = None
    for order in orders:
        history.append(OrderHistoryEntry(
            order_id=order.order_id,
            date=order.order_time,
            amount=order.total_amount,
            status=order.status,
        ))
        total_spent += order.total_amount
        last_order_date = order.order_time
    average = (total_spent / len(history)).quantize(CENT, rounding=ROUND_HALF_UP)
    return tuple(history), total_spent, average, last_order_date


def _empty_summary(seed: CustomerSeed) -> CustomerSummary:
    return CustomerSummary(
        id=seed.id,
        name=seed.name,
        phone=seed.phone,
        email=seed.email,
        addresses=seed.addresses,
        preferences=seed.preferences,
        notes=seed.notes,
        status=seed.status,
        order_history=(),
        total_orders=0,
        total_spent=Decimal("0"),
        average_order_value=Decimal("0"),
        loyalty_points=0,
        last_order_date=None,
        customer_since=seed.created_at,
    )


def _from_orders(phone: str, orders: List[OrderSnapshot]) -> CustomerSummary:
    """Customer known only through its orders."""
    first = orders[0]
    email = next((o.customer_email for o in orders if o.customer_email), None)
    return CustomerSummary(
        id=None,
        name=first.customer_name,
        phone=phone,
        email=email,
        addresses=({"id": "1", "label": "Home", "address": first.delivery_address, "is_default": True},),
        preferences={"favorite_items": [], "dietary_restrictions": [], "spice_level": "medium"},
        notes="",
        status=CustomerStatus.ACTIVE.value,
        order_history=(),
        total_orders=0,
        total_spent=Decimal("0"),
        average_order_value=Decimal("0"),
        loyalty_points=0,
        last_order_date=None,
        customer_since=first.order_time,
    )


def derive_customers(
    seeds: Iterable[CustomerSeed], orders: Iterable[OrderSnapshot]
) -> List[CustomerSummary]:
    """Build the customer list from stored seeds and the order history.

    Orders are grouped by phone and folded in the order they are given, not
    re-sorted by date. A seed sharing a phone keeps its identity, contact,
    preference and note fields while the statistics come from the orders.
    Customers are returned by total spent, highest first; ties keep seed
    order followed by first appearance in ``orders``.
    """
    by_phone: Dict[str, CustomerSummary] = {}
    for seed in seeds:
        # First seed wins when a phone is duplicated
        by_phone.setdefault(seed.phone, _empty_summary(seed))

    grouped: Dict[str, List[OrderSnapshot]] = {}
    for order in orders:
        grouped.setdefault(order.customer_phone, []).append(order)

    for phone, phone_orders in grouped.items():
        base = by_phone.get(phone) or _from_orders(phone, phone_orders)
        history, total_spent, average, last_order_date = _fold(phone_orders)
        by_phone[phone] = replace(
            base,
            order_history=history,
            total_orders=len(history),
            total_spent=total_spent,
            average_order_value=average,
            loyalty_points=loyalty_points(total_spent),
            last_order_date=last_order_date,
            status=classify(total_spent),
        )

    return sorted(by_phone.values(), key=lambda c: c.total_spent, reverse=True)


def load_customer_view(db: Session) -> List[CustomerSummary]:
    """Read seeds and orders from the database and derive the view."""
    seeds = [CustomerSeed.from_model(c) for c in db.scalars(select(Customer).order_by(Customer.id))]
    orders = [OrderSnapshot.from_model(o) for o in db.scalars(select(Order).order_by(Order.id))]
    customers = derive_customers(seeds, orders)
    logger.debug(f"Derived {len(customers)} customers from {len(seeds)} seeds and {len(orders)} orders")
    return customers


def find_customer(customers: Iterable[CustomerSummary], customer_id: int) -> Optional[CustomerSummary]:
    return next((c for c in customers if c.id == customer_id), None)
