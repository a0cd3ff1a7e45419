"""Tests for order creation and status transitions."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.core.config import Settings, settings
from app.core.exceptions import (
    ConcurrentModification,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
    StorageError,
    ValidationError,
)
from app.models.delivery import DeliveryConfirmation, DeliveryStatus
from app.models.order import Order, OrderStatus
from app.services import order_events, order_lifecycle
from app.services.delivery import DeliveryData
from app.services.order_lifecycle import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    OrderLine,
    can_transition,
    format_order_number,
    transition,
)

ORDER_TIME = datetime(2026, 3, 15, 12, 30, tzinfo=timezone.utc)


class TestStateMachine:
    """Adjacency rules."""

    def test_forward_path(self):
        assert can_transition(OrderStatus.PENDING, OrderStatus.COOKING)
        assert can_transition(OrderStatus.COOKING, OrderStatus.OUT_FOR_DELIVERY)
        assert can_transition(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED)

    def test_cancel_from_every_open_status(self):
        for current in (OrderStatus.PENDING, OrderStatus.COOKING, OrderStatus.OUT_FOR_DELIVERY):
            assert can_transition(current, OrderStatus.CANCELLED)

    def test_no_skipping_or_going_back(self):
        assert not can_transition(OrderStatus.PENDING, OrderStatus.DELIVERED)
        assert not can_transition(OrderStatus.PENDING, OrderStatus.OUT_FOR_DELIVERY)
        assert not can_transition(OrderStatus.COOKING, OrderStatus.PENDING)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
        for status in OrderStatus:
            assert not can_transition(OrderStatus.DELIVERED, status)
            assert not can_transition(OrderStatus.CANCELLED, status)

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)


class TestCreateOrder:

    def test_pending_with_total(self, db_session, test_recipe, make_order):
        order = make_order(items=[
            OrderLine(recipe_id=test_recipe.id, quantity=2),
            OrderLine(recipe_id=test_recipe.id, quantity=3, price=Decimal("199.50")),
        ])
        assert order.status is OrderStatus.PENDING
        assert order.total_amount == Decimal("1098.50")
        assert order.total_quantity == 5
        assert order.version == 1
        assert [i.price for i in order.items] == [Decimal("250.00"), Decimal("199.50")]

    def test_order_numbers_follow_daily_count(self, make_order):
        first = make_order()
        second = make_order(now=ORDER_TIME + timedelta(hours=3))
        next_day = make_order(now=ORDER_TIME + timedelta(days=1))
        assert first.order_number == "ORD-20260315-001"
        assert second.order_number == "ORD-20260315-002"
        assert next_day.order_number == "ORD-20260316-001"

    def test_number_uses_kitchen_local_date(self, make_order):
        """In Asia/Kolkata, 20:00 UTC on the 15th is already 01:30 on the 16th."""
        with patch.object(settings, "order_timezone", "Asia/Kolkata"):
            late_evening = make_order(now=datetime(2026, 3, 15, 18, 0, tzinfo=timezone.utc))
            after_midnight = make_order(now=datetime(2026, 3, 15, 20, 0, tzinfo=timezone.utc))
            next_morning = make_order(now=datetime(2026, 3, 16, 3, 0, tzinfo=timezone.utc))

        assert late_evening.order_number == "ORD-20260315-001"
        assert after_midnight.order_number == "ORD-20260316-001"
        assert next_morning.order_number == "ORD-20260316-002"

    def test_local_order_day(self):
        moment = datetime(2026, 3, 15, 20, 0, tzinfo=timezone.utc)
        assert order_lifecycle.local_order_day(moment) == date(2026, 3, 15)
        with patch.object(settings, "order_timezone", "Asia/Kolkata"):
            assert order_lifecycle.local_order_day(moment) == date(2026, 3, 16)
        with patch.object(settings, "order_timezone", "America/New_York"):
            assert order_lifecycle.local_order_day(datetime(2026, 3, 16, 2, 0, tzinfo=timezone.utc)) == date(2026, 3, 15)

    def test_unknown_timezone_setting_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(order_timezone="Mars/Olympus_Mons")

    def test_format_pads_sequence(self):
        assert format_order_number(datetime(2026, 1, 5, tzinfo=timezone.utc), 7) == "ORD-20260105-007"
        assert format_order_number(datetime(2026, 1, 5, tzinfo=timezone.utc), 1234) == "ORD-20260105-1234"

    def test_taken_number_is_retried(self, db_session, make_order):
        """A number already used (e.g. by an order filed under another day) is skipped."""
        make_order(now=ORDER_TIME - timedelta(days=1))
        db_session.execute(update(Order).values(order_number="ORD-20260315-001"))
        db_session.commit()

        order = make_order()
        assert order.order_number == "ORD-20260315-002"

    def test_gives_up_after_max_attempts(self, db_session, make_order):
        make_order(now=ORDER_TIME - timedelta(days=1))
        db_session.execute(update(Order).values(order_number="ORD-20260315-001"))
        db_session.commit()

        with patch.object(settings, "order_number_max_attempts", 1):
            with pytest.raises(StorageError):
                make_order()
        assert len(db_session.scalars(select(Order)).all()) == 1

    def test_records_created_event(self, db_session, test_order):
        events = order_events.list_events(db_session, test_order.id)
        assert [e.event_type for e in events] == [order_events.ORDER_CREATED]
        assert events[0].payload["order_number"] == test_order.order_number

    def test_empty_items_rejected(self, make_order):
        with pytest.raises(ValidationError):
            make_order(items=[])

    def test_zero_quantity_rejected(self, test_recipe, make_order):
        with pytest.raises(InvalidQuantity):
            make_order(items=[OrderLine(recipe_id=test_recipe.id, quantity=0)])

    def test_unknown_recipe(self, make_order):
        with pytest.raises(NotFound):
            make_order(items=[OrderLine(recipe_id=9999, quantity=1)])

    def test_blank_address_rejected(self, make_order):
        with pytest.raises(ValidationError):
            make_order(delivery_address="  ")

    def test_unknown_assigned_staff(self, make_order):
        with pytest.raises(NotFound):
            make_order(assigned_staff_id=9999)


class TestTransition:

    def test_step_by_step_to_cooking(self, db_session, test_order):
        order = transition(db_session, test_order.id, "cooking")
        assert order.status is OrderStatus.COOKING
        assert order.version == 2

    def test_delivered_with_extra_meals(self, db_session, test_staff, out_for_delivery_order):
        """10 ordered, 12 handed over: completed, and the driver becomes the assignee."""
        order = transition(
            db_session, out_for_delivery_order.id, OrderStatus.DELIVERED,
            actor_id=test_staff.id, delivery_data=DeliveryData(quantity=12, notes="extra given"),
        )
        assert order.status is OrderStatus.DELIVERED
        assert order.assigned_staff_id == test_staff.id

        confirmation = order.delivery_confirmation
        assert confirmation.ordered_quantity == 10
        assert confirmation.delivered_quantity == 12
        assert confirmation.delivery_status is DeliveryStatus.COMPLETED
        assert confirmation.delivery_notes == "extra given"
        assert confirmation.delivered_by_id == test_staff.id
        assert confirmation.variance == 2

    def test_delivered_short_is_partial(self, db_session, out_for_delivery_order):
        order = transition(
            db_session, out_for_delivery_order.id, "delivered", delivery_data=DeliveryData(quantity=7)
        )
        assert order.delivery_confirmation.delivery_status is DeliveryStatus.PARTIAL

    def test_delivered_without_data_writes_no_confirmation(self, db_session, out_for_delivery_order):
        order = transition(db_session, out_for_delivery_order.id, "delivered")
        assert order.status is OrderStatus.DELIVERED
        assert db_session.scalars(select(DeliveryConfirmation)).all() == []

    def test_skipping_to_delivered_fails(self, db_session, test_order):
        """pending -> delivered is not allowed and nothing changes."""
        with pytest.raises(InvalidTransition) as exc_info:
            transition(db_session, test_order.id, "delivered", delivery_data=DeliveryData(quantity=10))

        assert exc_info.value.context == {
            "current": "pending", "requested": "delivered", "order_id": test_order.id,
        }
        db_session.expire_all()
        order = db_session.get(Order, test_order.id)
        assert order.status is OrderStatus.PENDING
        assert order.version == 1
        assert db_session.scalars(select(DeliveryConfirmation)).all() == []

    def test_cancelled_is_terminal(self, db_session, test_order):
        transition(db_session, test_order.id, "cancelled")
        with pytest.raises(InvalidTransition):
            transition(db_session, test_order.id, "cooking")

    def test_unknown_status(self, db_session, test_order):
        with pytest.raises(ValidationError):
            transition(db_session, test_order.id, "eaten")

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFound):
            transition(db_session, 9999, "cooking")

    def test_unknown_actor(self, db_session, test_order):
        with pytest.raises(NotFound):
            transition(db_session, test_order.id, "cooking", actor_id=9999)

    def test_negative_delivered_quantity(self, db_session, out_for_delivery_order):
        with pytest.raises(InvalidQuantity):
            transition(db_session, out_for_delivery_order.id, "delivered", delivery_data=DeliveryData(quantity=-1))
        db_session.expire_all()
        assert db_session.get(Order, out_for_delivery_order.id).status is OrderStatus.OUT_FOR_DELIVERY

    def test_stale_expected_version(self, db_session, test_order):
        transition(db_session, test_order.id, "cooking")
        with pytest.raises(ConcurrentModification):
            transition(db_session, test_order.id, "out_for_delivery", expected_version=1)

    def test_concurrent_write_is_detected(self, db_session, test_order):
        """Another writer bumps the row after this session read it."""
        order = db_session.get(Order, test_order.id)
        assert order.version == 1
        db_session.execute(
            update(Order)
            .where(Order.id == test_order.id)
            .values(status=OrderStatus.CANCELLED, version=Order.version + 1)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(ConcurrentModification):
            transition(db_session, test_order.id, "cooking")

        db_session.expire_all()
        assert db_session.get(Order, test_order.id).status is OrderStatus.PENDING

    def test_storage_failure_rolls_back_confirmation_and_status(self, db_session, out_for_delivery_order):
        failure = OperationalError("INSERT INTO order_events", {}, Exception("database is locked"))
        with patch("app.services.order_events.record", side_effect=failure):
            with pytest.raises(StorageError):
                transition(
                    db_session, out_for_delivery_order.id, "delivered",
                    delivery_data=DeliveryData(quantity=10),
                )

        db_session.expire_all()
        assert db_session.get(Order, out_for_delivery_order.id).status is OrderStatus.OUT_FOR_DELIVERY
        assert db_session.scalars(select(DeliveryConfirmation)).all() == []


class TestOrderEvents:

    def test_transition_records_and_publishes(self, db_session, test_order):
        received = []
        unsubscribe = order_events.subscribe(received.append)
        try:
            transition(db_session, test_order.id, "cooking")
        finally:
            unsubscribe()

        assert len(received) == 1
        event = received[0]
        assert event.event_type == order_events.STATUS_CHANGED
        assert (event.previous_status, event.status) == ("pending", "cooking")
        assert event.version == 2

        stored = order_events.list_events(db_session, test_order.id)
        assert [e.event_type for e in stored] == [order_events.ORDER_CREATED, order_events.STATUS_CHANGED]
        assert stored[-1].payload["status"] == "cooking"

    def test_rejected_transition_publishes_nothing(self, db_session, test_order):
        received = []
        unsubscribe = order_events.subscribe(received.append)
        try:
            with pytest.raises(InvalidTransition):
                transition(db_session, test_order.id, "delivered")
        finally:
            unsubscribe()
        assert received == []

    def test_failing_subscriber_does_not_break_transition(self, db_session, test_order):
        def broken(notification):
            raise RuntimeError("listener down")

        unsubscribe = order_events.subscribe(broken)
        try:
            order = transition(db_session, test_order.id, "cooking")
        finally:
            unsubscribe()
        assert order.status is OrderStatus.COOKING


class TestAssignStaff:

    def test_assign_and_clear(self, db_session, test_staff, test_order):
        order = order_lifecycle.assign_staff(db_session, test_order.id, test_staff.id)
        assert order.assigned_staff_id == test_staff.id
        assert order.status is OrderStatus.PENDING
        assert order.version == 2

        order = order_lifecycle.assign_staff(db_session, test_order.id, None)
        assert order.assigned_staff_id is None

    def test_terminal_order_cannot_be_reassigned(self, db_session, test_staff, test_order):
        transition(db_session, test_order.id, "cancelled")
        with pytest.raises(ValidationError):
            order_lifecycle.assign_staff(db_session, test_order.id, test_staff.id)

    def test_unknown_staff(self, db_session, test_order):
        with pytest.raises(NotFound):
            order_lifecycle.assign_staff(db_session, test_order.id, 9999)

    def test_assignment_is_recorded_and_published(self, db_session, test_staff, test_order):
        received = []
        unsubscribe = order_events.subscribe(received.append)
        try:
            order_lifecycle.assign_staff(db_session, test_order.id, test_staff.id)
        finally:
            unsubscribe()

        assert [(e.event_type, e.actor_id, e.version) for e in received] == [
            (order_events.ORDER_ASSIGNED, test_staff.id, 2)
        ]
        stored = order_events.list_events(db_session, test_order.id)
        assert stored[-1].event_type == order_events.ORDER_ASSIGNED


class TestListOrders:

    def test_filter_by_assigned_staff(self, db_session, test_staff, make_order):
        mine = make_order(assigned_staff_id=test_staff.id)
        make_order(phone="+919800000002")
        assert [o.id for o in order_lifecycle.list_orders(db_session, assigned_staff_id=test_staff.id)] == [mine.id]
        assert len(order_lifecycle.list_orders(db_session)) == 2

    def test_filters_combine(self, db_session, test_staff, make_order):
        mine = make_order(assigned_staff_id=test_staff.id)
        transition(db_session, mine.id, "cooking")
        assert order_lifecycle.list_orders(db_session, status="pending", assigned_staff_id=test_staff.id) == []
        assert [o.id for o in order_lifecycle.list_orders(db_session, status="cooking", assigned_staff_id=test_staff.id)] == [mine.id]
