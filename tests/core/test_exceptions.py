"""Tests for the domain exception hierarchy."""

from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConsistencyViolationError,
    ExternalSyncError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidSyncTransitionError,
    LedgerError,
    MovementNotFoundError,
    NotFoundError,
    ProductNotFoundError,
    StockLedgerError,
    SyncError,
    SyncEventNotFoundError,
    ValidationError,
)


class TestStockLedgerError:
    def test_code_defaults_to_class_name(self):
        error = StockLedgerError("boom")
        assert error.code == "StockLedgerError"
        assert error.details == {}

    def test_to_dict(self):
        error = ProductNotFoundError(7)
        assert error.to_dict() == {
            "error": "PRODUCT_NOT_FOUND",
            "message": str(error),
            "details": {"product_id": 7},
        }


class TestHierarchy:
    def test_not_found_family(self):
        for error in (
            ProductNotFoundError(1),
            MovementNotFoundError(1),
            SyncEventNotFoundError(1),
        ):
            assert isinstance(error, NotFoundError)

    def test_ledger_family(self):
        assert isinstance(InsufficientStockError(1, 5, 2), LedgerError)
        assert isinstance(ConcurrencyConflictError("append_movement"), LedgerError)
        assert isinstance(ConsistencyViolationError(1, 3, 4), LedgerError)

    def test_sync_family(self):
        assert isinstance(InvalidSyncTransitionError(1, "failed", "in_flight"), SyncError)
        assert isinstance(ExternalSyncError("down"), SyncError)

    def test_invalid_quantity_is_validation_error(self):
        error = InvalidQuantityError(0)
        assert isinstance(error, ValidationError)
        assert error.code == "INVALID_QUANTITY"
        assert error.details["field"] == "quantity"


class TestDetails:
    def test_insufficient_stock(self):
        error = InsufficientStockError(3, requested=10, available=4)
        assert error.code == "INSUFFICIENT_STOCK"
        assert error.details == {"product_id": 3, "requested": 10, "available": 4}
        assert "requested 10, available 4" in str(error)

    def test_consistency_violation_drift(self):
        error = ConsistencyViolationError(3, cached=12, recomputed=10)
        assert error.details["drift"] == -2

    def test_external_sync_timeout_message(self):
        error = ExternalSyncError.timeout(5.0, event_id=9)
        assert error.message == "Accounting connector timed out after 5 seconds"
        assert error.details["event_id"] == 9

    def test_validation_error_truncates_value(self):
        error = ValidationError("search", "too long", "x" * 500)
        assert len(error.details["value"]) == 100
