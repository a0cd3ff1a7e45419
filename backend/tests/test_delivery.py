"""Tests for delivery confirmations."""

from unittest.mock import patch

import pytest
from sqlalchemy import select

from app.core.exceptions import ConcurrentModification, InvalidQuantity, NotFound, ValidationError
from app.models.delivery import DeliveryConfirmation, DeliveryStatus
from app.services import delivery, order_lifecycle
from app.services.delivery import derive_delivery_status


class TestDeriveStatus:

    @pytest.mark.parametrize("delivered,ordered,expected", [
        (10, 10, DeliveryStatus.COMPLETED),
        (12, 10, DeliveryStatus.COMPLETED),
        (9, 10, DeliveryStatus.PARTIAL),
        (0, 10, DeliveryStatus.PARTIAL),
        (0, 0, DeliveryStatus.COMPLETED),
    ])
    def test_completed_or_partial(self, delivered, ordered, expected):
        assert derive_delivery_status(delivered, ordered) is expected


class TestConfirmDelivery:

    def test_snapshots_ordered_quantity(self, db_session, test_staff, out_for_delivery_order):
        confirmation = delivery.confirm_delivery(
            db_session, out_for_delivery_order.id, 8, "two meals spilled", delivered_by_id=test_staff.id
        )
        assert confirmation.ordered_quantity == 10
        assert confirmation.delivered_quantity == 8
        assert confirmation.delivery_status is DeliveryStatus.PARTIAL
        assert confirmation.variance == -2
        assert confirmation.delivered_by_id == test_staff.id
        assert delivery.get_confirmation(db_session, out_for_delivery_order.id).id == confirmation.id

    def test_delivered_order_can_be_confirmed_afterwards(self, db_session, out_for_delivery_order):
        order_lifecycle.transition(db_session, out_for_delivery_order.id, "delivered")
        confirmation = delivery.confirm_delivery(db_session, out_for_delivery_order.id, 10)
        assert confirmation.delivery_status is DeliveryStatus.COMPLETED

    def test_only_one_confirmation_per_order(self, db_session, out_for_delivery_order):
        delivery.confirm_delivery(db_session, out_for_delivery_order.id, 10)
        with pytest.raises(ValidationError):
            delivery.confirm_delivery(db_session, out_for_delivery_order.id, 9)
        assert len(db_session.scalars(select(DeliveryConfirmation)).all()) == 1

    def test_negative_quantity(self, db_session, out_for_delivery_order):
        with pytest.raises(InvalidQuantity):
            delivery.confirm_delivery(db_session, out_for_delivery_order.id, -1)

    def test_pending_order_rejected(self, db_session, test_order):
        with pytest.raises(ValidationError):
            delivery.confirm_delivery(db_session, test_order.id, 10)

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFound):
            delivery.confirm_delivery(db_session, 9999, 1)

    def test_unknown_courier(self, db_session, out_for_delivery_order):
        with pytest.raises(NotFound):
            delivery.confirm_delivery(db_session, out_for_delivery_order.id, 10, delivered_by_id=9999)
        assert db_session.scalars(select(DeliveryConfirmation)).all() == []

    def test_duplicate_insert_is_a_conflict(self, db_session, out_for_delivery_order):
        """A second writer that passed the existence check loses on the unique order_id."""
        delivery.confirm_delivery(db_session, out_for_delivery_order.id, 10)
        with patch("app.services.delivery.get_confirmation", return_value=None):
            with pytest.raises(ConcurrentModification):
                delivery.confirm_delivery(db_session, out_for_delivery_order.id, 8)

        confirmations = db_session.scalars(select(DeliveryConfirmation)).all()
        assert [c.delivered_quantity for c in confirmations] == [10]
