"""
Domain exceptions for the StockLedger application.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all StockLedger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(StockLedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """Movement quantity is not a positive integer."""

    def __init__(self, quantity: Any):
        super().__init__(
            field="quantity",
            message="Quantity must be a positive integer",
            value=quantity,
        )
        self.code = "INVALID_QUANTITY"


# Not Found Exceptions
class NotFoundError(StockLedgerError):
    """Base exception for missing resources."""

    pass


class ProductNotFoundError(NotFoundError):
    """Product not found in storage."""

    def __init__(self, product_id: int):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )


class MovementNotFoundError(NotFoundError):
    """Stock movement not found in storage."""

    def __init__(self, movement_id: int):
        super().__init__(
            f"Movement not found: {movement_id}",
            code="MOVEMENT_NOT_FOUND",
            details={"movement_id": movement_id},
        )


class SyncEventNotFoundError(NotFoundError):
    """Sync event not found in storage."""

    def __init__(self, event_id: int):
        super().__init__(
            f"Sync event not found: {event_id}",
            code="SYNC_EVENT_NOT_FOUND",
            details={"event_id": event_id},
        )


# Ledger Exceptions
class LedgerError(StockLedgerError):
    """Base exception for ledger and aggregate operations."""

    pass


class InsufficientStockError(LedgerError):
    """A change would drive a product's stock below zero."""

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )


class ConcurrencyConflictError(LedgerError):
    """An atomic update lost a race with a concurrent writer."""

    def __init__(self, operation: str, reason: str | None = None):
        super().__init__(
            f"Concurrent update conflict during {operation}"
            + (f": {reason}" if reason else ""),
            code="CONCURRENCY_CONFLICT",
            details={"operation": operation, "reason": reason},
        )


class ConsistencyViolationError(LedgerError):
    """Cached aggregate diverged from the ledger sum.

    Never raised to callers; the cache is corrected and the violation logged.
    """

    def __init__(self, product_id: int, cached: int, recomputed: int):
        super().__init__(
            f"Cached stock for product {product_id} was {cached}, "
            f"ledger sum is {recomputed}",
            code="CONSISTENCY_VIOLATION",
            details={
                "product_id": product_id,
                "cached": cached,
                "recomputed": recomputed,
                "drift": recomputed - cached,
            },
        )


# Sync Exceptions
class SyncError(StockLedgerError):
    """Base exception for sync queue operations."""

    pass


class InvalidSyncTransitionError(SyncError):
    """Requested sync state transition is not allowed."""

    def __init__(self, event_id: int, current: str, target: str):
        super().__init__(
            f"Sync event {event_id} cannot move from '{current}' to '{target}'",
            code="INVALID_SYNC_TRANSITION",
            details={"event_id": event_id, "current": current, "target": target},
        )


class ExternalSyncError(SyncError):
    """Accounting connector unreachable, rejected the voucher, or timed out.

    Recorded onto the sync event; never raised to unrelated callers.
    """

    def __init__(self, reason: str, event_id: int | None = None):
        super().__init__(
            reason,
            code="EXTERNAL_SYNC_ERROR",
            details={"event_id": event_id, "reason": reason},
        )

    @classmethod
    def timeout(cls, seconds: float, event_id: int | None = None) -> "ExternalSyncError":
        return cls(f"Accounting connector timed out after {seconds:g} seconds", event_id)


# Storage Exceptions
class StorageError(StockLedgerError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )
