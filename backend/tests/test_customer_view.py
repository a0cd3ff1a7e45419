"""Tests for the derived customer view."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models.customer import Customer, CustomerStatus
from app.services.customer_view import (
    CustomerSeed,
    OrderSnapshot,
    classify,
    derive_customers,
    load_customer_view,
    loyalty_points,
)
from app.services.order_lifecycle import OrderLine

ORDER_TIME = datetime(2026, 3, 15, 12, 30, tzinfo=timezone.utc)

PHONE = "+919876543210"


def _snapshot(order_id, amount, phone=PHONE, when=ORDER_TIME, name="Asha Rao", **kwargs):
    return OrderSnapshot(
        order_id=order_id,
        customer_name=name,
        customer_phone=phone,
        delivery_address=kwargs.pop("delivery_address", "12 MG Road, Bengaluru"),
        order_time=when,
        total_amount=Decimal(str(amount)),
        status=kwargs.pop("status", "delivered"),
        **kwargs,
    )


class TestClassification:

    @pytest.mark.parametrize("spent,expected", [
        ("0", "active"),
        ("4999.99", "active"),
        ("5000", "active"),
        ("5000.01", "vip"),
        ("12000", "vip"),
    ])
    def test_vip_strictly_above_threshold(self, spent, expected):
        assert classify(Decimal(spent)) == expected

    @pytest.mark.parametrize("spent,points", [
        ("0", 0), ("9.99", 0), ("10", 1), ("5500", 550), ("5509.50", 550),
    ])
    def test_loyalty_points_floor(self, spent, points):
        assert loyalty_points(Decimal(spent)) == points


class TestDeriveCustomers:

    def test_two_orders_make_a_vip(self):
        """2000 + 3500 from one phone: 5500 spent, above the VIP threshold."""
        customers = derive_customers([], [
            _snapshot(1, 2000),
            _snapshot(2, 3500, when=ORDER_TIME + timedelta(days=2)),
        ])
        assert len(customers) == 1
        customer = customers[0]
        assert customer.id is None
        assert customer.total_orders == 2
        assert customer.total_spent == Decimal("5500")
        assert customer.average_order_value == Decimal("2750.00")
        assert customer.loyalty_points == 550
        assert customer.status == "vip"
        assert customer.last_order_date == ORDER_TIME + timedelta(days=2)
        assert customer.customer_since == ORDER_TIME
        assert [h.order_id for h in customer.order_history] == [1, 2]

    def test_exactly_threshold_stays_active(self):
        customers = derive_customers([], [_snapshot(1, 2500), _snapshot(2, 2500)])
        assert customers[0].total_spent == Decimal("5000")
        assert customers[0].status == "active"

    def test_one_cent_over_threshold(self):
        customers = derive_customers([], [_snapshot(1, "5000.01")])
        assert customers[0].status == "vip"

    def test_idempotent(self):
        seeds = [CustomerSeed(id=1, name="Asha", phone=PHONE)]
        orders = [_snapshot(1, 1200), _snapshot(2, 800, phone="+919811111111", name="Vikram")]
        assert derive_customers(seeds, orders) == derive_customers(seeds, orders)

    def test_inputs_are_not_modified(self):
        seeds = [CustomerSeed(id=1, name="Asha", phone=PHONE, notes="ring twice")]
        orders = [_snapshot(1, 1200)]
        derive_customers(seeds, orders)
        assert seeds == [CustomerSeed(id=1, name="Asha", phone=PHONE, notes="ring twice")]
        assert orders == [_snapshot(1, 1200)]

    def test_seed_identity_wins(self):
        seed = CustomerSeed(
            id=7,
            name="Asha R.",
            phone=PHONE,
            email="asha@example.com",
            addresses=({"id": "1", "label": "Office", "address": "Tech Park", "is_default": True},),
            preferences={"favorite_items": ["Veg Biryani"], "dietary_restrictions": [], "spice_level": "spicy"},
            notes="ring twice",
            status="inactive",
        )
        customer = derive_customers([seed], [_snapshot(1, 900, name="Someone Else")])[0]
        assert customer.id == 7
        assert customer.name == "Asha R."
        assert customer.email == "asha@example.com"
        assert customer.addresses[0]["label"] == "Office"
        assert customer.preferences["spice_level"] == "spicy"
        assert customer.notes == "ring twice"
        assert customer.total_spent == Decimal("900")
        assert customer.status == "active"

    def test_seed_without_orders_keeps_stored_status(self):
        seed = CustomerSeed(id=3, name="Meera", phone="+919822222222", status="inactive")
        customer = derive_customers([seed], [])[0]
        assert customer.status == "inactive"
        assert customer.total_orders == 0
        assert customer.total_spent == Decimal("0")
        assert customer.average_order_value == Decimal("0")
        assert customer.last_order_date is None

    def test_first_seed_for_a_phone_wins(self):
        seeds = [
            CustomerSeed(id=1, name="First", phone=PHONE),
            CustomerSeed(id=2, name="Second", phone=PHONE),
        ]
        customers = derive_customers(seeds, [])
        assert [(c.id, c.name) for c in customers] == [(1, "First")]

    def test_folds_in_given_order(self):
        """last_order_date is the last order folded, not the latest date."""
        later = ORDER_TIME + timedelta(days=5)
        customer = derive_customers([], [
            _snapshot(1, 100, when=later),
            _snapshot(2, 200, when=ORDER_TIME, name="Asha Rao-Iyer"),
        ])[0]
        assert [h.order_id for h in customer.order_history] == [1, 2]
        assert customer.last_order_date == ORDER_TIME
        assert customer.name == "Asha Rao"
        assert customer.customer_since == later

    def test_order_only_customer_defaults(self):
        customer = derive_customers([], [
            _snapshot(1, 100),
            _snapshot(2, 100, customer_email="asha@example.com"),
        ])[0]
        assert customer.email == "asha@example.com"
        assert customer.addresses == (
            {"id": "1", "label": "Home", "address": "12 MG Road, Bengaluru", "is_default": True},
        )
        assert customer.preferences["spice_level"] == "medium"

    def test_average_rounds_half_up(self):
        customer = derive_customers([], [_snapshot(1, "0.01"), _snapshot(2, "0.02")])[0]
        assert customer.average_order_value == Decimal("0.02")

    def test_sorted_by_total_spent(self):
        customers = derive_customers(
            [CustomerSeed(id=1, name="Idle", phone="+919800000000")],
            [
                _snapshot(1, 300, phone="+919811111111"),
                _snapshot(2, 900, phone="+919822222222"),
                _snapshot(3, 400, phone="+919811111111"),
            ],
        )
        assert [c.total_spent for c in customers] == [Decimal("900"), Decimal("700"), Decimal("0")]
        assert customers[-1].id == 1


class TestLoadCustomerView:

    def test_from_database(self, db_session, test_recipe, make_order):
        db_session.add(Customer(name="Asha R.", phone=PHONE, notes="ring twice"))
        db_session.commit()
        make_order(items=[OrderLine(recipe_id=test_recipe.id, quantity=1, price=Decimal("2000"))])
        make_order(
            items=[OrderLine(recipe_id=test_recipe.id, quantity=1, price=Decimal("3500"))],
            now=ORDER_TIME + timedelta(hours=1),
        )
        make_order(quantity=1, phone="+919811111111", customer_name="Vikram")

        customers = load_customer_view(db_session)
        assert [c.phone for c in customers] == [PHONE, "+919811111111"]
        asha = customers[0]
        assert asha.name == "Asha R."
        assert asha.total_spent == Decimal("5500")
        assert asha.status == CustomerStatus.VIP.value
        assert asha.loyalty_points == 550
        assert customers[1].id is None
        assert customers[1].total_spent == Decimal("250")

    def test_view_is_not_stored(self, db_session, make_order):
        db_session.add(Customer(name="Asha", phone=PHONE))
        db_session.commit()
        make_order(quantity=30)

        assert load_customer_view(db_session)[0].status == "vip"
        stored = db_session.query(Customer).one()
        assert stored.status is CustomerStatus.ACTIVE
