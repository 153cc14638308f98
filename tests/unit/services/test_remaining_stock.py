"""Tests for the remaining-stock projector."""

from datetime import UTC, datetime

from stockledger.core.entities import (
    Movement,
    MovementRecord,
    MovementType,
    StockInDetails,
    StockOutDetails,
)
from stockledger.core.services import attach, project_remaining

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def _record(
    movement_id: int,
    quantity: int,
    later_out_total: int | None,
    product_id: int = 1,
    movement_type: MovementType = MovementType.OUT,
) -> MovementRecord:
    details = StockOutDetails() if movement_type == MovementType.OUT else StockInDetails()
    return MovementRecord(
        movement=Movement(
            id=movement_id,
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            occurred_at=NOW,
            details=details,
        ),
        later_out_total=later_out_total,
    )


class TestProjectRemaining:
    def test_example(self):
        assert project_remaining(50, [5, 10, 15]) == [50, 55, 65]

    def test_no_outs(self):
        assert project_remaining(20, []) == []

    def test_most_recent_out_sees_current_stock(self):
        assert project_remaining(0, [7])[0] == 0


class TestAttach:
    def test_page_two_uses_full_history_offset(self):
        # Page 2 of [5, 10, 15] sorted newest first with a page size of 2
        records = attach(50, [_record(1, 15, later_out_total=15)])
        assert records[0].remaining_stock == 65

    def test_order_independent(self):
        rows = [_record(3, 5, 0), _record(1, 15, 15), _record(2, 10, 5)]
        by_id = {r.movement.id: r.remaining_stock for r in attach(50, reversed(rows))}
        assert by_id == {3: 50, 2: 55, 1: 65}

    def test_stock_map_by_product(self):
        rows = [_record(1, 4, 0, product_id=1), _record(2, 4, 6, product_id=2)]
        result = attach({1: 10, 2: 20}, rows)
        assert [r.remaining_stock for r in result] == [10, 26]

    def test_unknown_product_in_map_left_unset(self):
        result = attach({1: 10}, [_record(1, 4, 0, product_id=9)])
        assert result[0].remaining_stock is None

    def test_in_rows_untouched(self):
        row = _record(1, 4, None, movement_type=MovementType.IN)
        assert attach(10, [row])[0].remaining_stock is None
