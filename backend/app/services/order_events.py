"""Order change notifications.

A change is recorded twice:
1. ``record()`` adds an OrderEvent outbox row inside the caller's transaction,
   so the event exists exactly when the change it describes was committed.
2. ``publish()`` is called after the commit and hands the event to in-process
   subscribers (the websocket broadcaster, loggers, tests).
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.order import OrderEvent

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
STATUS_CHANGED = "order.status_changed"
ORDER_ASSIGNED = "order.assigned"


@dataclass(frozen=True)
class OrderNotification:
    event_type: str
    order_id: int
    order_number: str
    status: str
    occurred_at: datetime
    previous_status: Optional[str] = None
    actor_id: Optional[int] = None
    version: Optional[int] = None

    def as_payload(self) -> dict:
        payload = asdict(self)
        payload["occurred_at"] = self.occurred_at.isoformat()
        return payload


Subscriber = Callable[[OrderNotification], None]

_subscribers: List[Subscriber] = []


def subscribe(callback: Subscriber) -> Callable[[], None]:
    """Register a callback; returns a function that removes it again."""
    _subscribers.append(callback)

    def unsubscribe() -> None:
        if callback in _subscribers:
            _subscribers.remove(callback)

    return unsubscribe


def record(db: Session, notification: OrderNotification) -> OrderEvent:
    event = OrderEvent(
        order_id=notification.order_id,
        event_type=notification.event_type,
        payload=notification.as_payload(),
    )
    db.add(event)
    return event


def publish(notification: OrderNotification) -> None:
    """Deliver a committed change to every subscriber.

    The change is already durable, so a failing subscriber is logged and the
    remaining subscribers still run.
    """
    for callback in list(_subscribers):
        try:
            callback(notification)
        except Exception:
            logger.exception(
                f"Order event subscriber {getattr(callback, '__name__', callback)!r} failed "
                f"for {notification.event_type} on order {notification.order_id}"
            )


def list_events(db: Session, order_id: int) -> List[OrderEvent]:
    return list(db.scalars(
        select(OrderEvent).where(OrderEvent.order_id == order_id).order_by(OrderEvent.id)
    ))
