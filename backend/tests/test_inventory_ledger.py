"""Tests for the inventory ledger service."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import InvalidQuantity, NotFound, StorageError, ValidationError
from app.models.inventory import InventoryItem
from app.models.stock import MovementType, StockMovement
from app.services import inventory_ledger
from app.services.inventory_ledger import apply_movement, next_stock


def _movement_count(db_session) -> int:
    return db_session.scalar(select(func.count(StockMovement.id)))


class TestNextStock:
    """The pure stock rule."""

    def test_in_adds(self):
        assert next_stock(Decimal("10"), MovementType.IN, Decimal("5")) == Decimal("15")

    def test_out_subtracts(self):
        assert next_stock(Decimal("10"), MovementType.OUT, Decimal("4")) == Decimal("6")

    def test_out_clamps_at_zero(self):
        assert next_stock(Decimal("3"), MovementType.OUT, Decimal("20")) == Decimal("0")

    def test_out_exact_reaches_zero(self):
        assert next_stock(Decimal("10"), MovementType.OUT, Decimal("10")) == Decimal("0")


class TestApplyMovement:
    """Applying movements to stored items."""

    def test_restock_then_oversized_out_clamps(self, db_session, test_item):
        """10 kg + 5 in = 15, then 20 out = 0 rather than -5."""
        movement, item = apply_movement(db_session, test_item.id, "in", 5, "Weekly delivery", "Store keeper")
        assert item.current_stock == Decimal("15")
        assert movement.movement_type is MovementType.IN
        assert movement.quantity == Decimal("5")

        _, item = apply_movement(db_session, test_item.id, "out", 20, "Spoilage", "Store keeper")
        assert item.current_stock == Decimal("0")
        assert _movement_count(db_session) == 2

    def test_in_then_out_returns_to_start(self, db_session, test_item):
        apply_movement(db_session, test_item.id, "in", Decimal("7.5"), "Delivery", "Store keeper")
        _, item = apply_movement(db_session, test_item.id, "out", Decimal("7.5"), "Correction", "Store keeper")
        assert item.current_stock == Decimal("10")

    def test_in_sets_last_restocked(self, db_session, test_item):
        assert test_item.last_restocked is None
        _, item = apply_movement(db_session, test_item.id, "in", 1, "Delivery", "Store keeper")
        assert item.last_restocked is not None

    def test_out_leaves_last_restocked(self, db_session, test_item):
        _, item = apply_movement(db_session, test_item.id, "out", 1, "Lunch prep", "Chef")
        assert item.last_restocked is None

    def test_optional_fields_are_stored(self, db_session, test_item):
        movement, _ = apply_movement(
            db_session, test_item.id, MovementType.IN, 2, "Delivery", "Store keeper",
            reference_number="INV-2211", unit_cost=Decimal("90"), total_cost=Decimal("180"),
            notes="Two sacks",
        )
        assert movement.reference_number == "INV-2211"
        assert movement.total_cost == Decimal("180")
        assert movement.notes == "Two sacks"
        assert movement.created_at is not None

    @pytest.mark.parametrize("quantity", [0, -1, "-0.5"])
    def test_non_positive_quantity_rejected(self, db_session, test_item, quantity):
        with pytest.raises(InvalidQuantity):
            apply_movement(db_session, test_item.id, "in", quantity, "Delivery", "Store keeper")
        assert _movement_count(db_session) == 0

    def test_invalid_quantity_is_a_validation_error(self, db_session, test_item):
        with pytest.raises(ValidationError):
            apply_movement(db_session, test_item.id, "out", 0, "Lunch prep", "Chef")

    def test_unknown_movement_type_rejected(self, db_session, test_item):
        with pytest.raises(ValidationError):
            apply_movement(db_session, test_item.id, "sideways", 1, "Delivery", "Store keeper")

    def test_blank_reason_rejected(self, db_session, test_item):
        with pytest.raises(ValidationError):
            apply_movement(db_session, test_item.id, "in", 1, "   ", "Store keeper")

    def test_unknown_item(self, db_session):
        with pytest.raises(NotFound):
            apply_movement(db_session, 9999, "in", 1, "Delivery", "Store keeper")
        assert _movement_count(db_session) == 0

    def test_deleted_item_is_not_found(self, db_session, test_item):
        test_item.soft_delete()
        db_session.commit()
        with pytest.raises(NotFound):
            apply_movement(db_session, test_item.id, "in", 1, "Delivery", "Store keeper")

    def test_storage_failure_rolls_back_both_rows(self, db_session, test_item):
        """A failing stock update must not leave the movement behind."""
        failure = OperationalError("UPDATE inventory_items", {}, Exception("database is locked"))
        with patch("app.services.inventory_ledger._stock_expression", side_effect=failure):
            with pytest.raises(StorageError) as exc_info:
                apply_movement(db_session, test_item.id, "in", 5, "Delivery", "Store keeper")

        assert exc_info.value.context["operation"] == "apply_movement"
        assert _movement_count(db_session) == 0
        assert db_session.get(InventoryItem, test_item.id).current_stock == Decimal("10")


class TestLedgerReads:

    def test_get_item(self, db_session, test_item):
        assert inventory_ledger.get_item(db_session, test_item.id).name == "Basmati Rice"

    def test_low_stock_includes_item_at_minimum(self, db_session, test_item):
        apply_movement(db_session, test_item.id, "out", 5, "Lunch prep", "Chef")
        low = inventory_ledger.list_low_stock(db_session)
        assert [i.id for i in low] == [test_item.id]

    def test_low_stock_excludes_item_above_minimum(self, db_session, test_item):
        assert inventory_ledger.list_low_stock(db_session) == []

    def test_low_stock_excludes_deleted_items(self, db_session, test_item):
        apply_movement(db_session, test_item.id, "out", 10, "Lunch prep", "Chef")
        test_item.soft_delete()
        db_session.commit()
        assert inventory_ledger.list_low_stock(db_session) == []

    def test_low_stock_with_explicit_threshold(self, db_session, test_item):
        """10 kg on hand is above the 5 kg minimum but within a 12 kg threshold."""
        assert [i.id for i in inventory_ledger.list_low_stock(db_session, threshold=Decimal("12"))] == [test_item.id]
        assert inventory_ledger.list_low_stock(db_session, threshold=Decimal("9.5")) == []

    def test_threshold_overrides_minimum(self, db_session, test_item):
        apply_movement(db_session, test_item.id, "out", 6, "Lunch prep", "Chef")
        assert [i.id for i in inventory_ledger.list_low_stock(db_session)] == [test_item.id]
        assert inventory_ledger.list_low_stock(db_session, threshold=Decimal("3")) == []

    def test_movements_newest_first(self, db_session, test_item):
        first, _ = apply_movement(db_session, test_item.id, "in", 1, "Delivery", "Store keeper")
        second, _ = apply_movement(db_session, test_item.id, "out", 1, "Lunch prep", "Chef")
        ids = [m.id for m in inventory_ledger.list_movements(db_session, inventory_item_id=test_item.id)]
        assert ids == [second.id, first.id]
