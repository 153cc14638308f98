"""
Aggregate Service.

The only writer of a product's cached ``current_stock``. Every change to the
ledger goes through here so the cache always equals the ledger sum:

    current_stock == sum(In) - sum(Out) over non-deleted movements

Appends use a conditional update inside the store's write transaction, so
two concurrent Outs on the same product can never both pass the stock check.
Edits and deletes recompute the full sum in the same transaction and compare
it with the expected value; a mismatch is logged as a consistency violation
and the cache is corrected.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from stockledger.config import get_logger
from stockledger.core.entities.movement import (
    IN_DETAIL_FIELDS,
    OUT_DETAIL_FIELDS,
    Movement,
    MovementPatch,
    MovementType,
    details_for,
)
from stockledger.core.entities.reports import ConsistencyViolation, ReconciliationReport
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConsistencyViolationError,
    InvalidQuantityError,
    MovementNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.timestamps import ensure_utc, utc_now

logger = get_logger(__name__)

T = TypeVar("T")

ADJUSTMENT_LABEL = "Stock Adjustment"


def validate_quantity(quantity: Any) -> int:
    """Return ``quantity`` if it is a positive integer, else raise."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity)
    return quantity


def validate_detail_keys(movement_type: MovementType, keys: Any) -> None:
    """Reject detail fields that belong to the other movement variant."""
    allowed = IN_DETAIL_FIELDS if movement_type == MovementType.IN else OUT_DETAIL_FIELDS
    unknown = sorted(set(keys) - allowed)
    if unknown:
        raise ValidationError(
            "details",
            f"Fields not valid for a stock-{movement_type.value} movement: "
            + ", ".join(unknown),
            unknown,
        )


class AggregateService:
    """
    Maintains the cached current-stock aggregate of every product.

    Lock contention surfaced by the store as ``ConcurrencyConflictError`` is
    retried with bounded exponential backoff before being raised.
    """

    def __init__(
        self,
        ledger_store: ILedgerStore,
        max_conflict_retries: int = 5,
        retry_delay: float = 0.05,
        retry_multiplier: float = 2.0,
    ) -> None:
        self._store = ledger_store
        self._max_conflict_retries = max_conflict_retries
        self._retry_delay = retry_delay
        self._retry_multiplier = retry_multiplier

        self.violation_count = 0
        self.last_violation: ConsistencyViolation | None = None

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator for write conflicts."""
        return retry(
            stop=stop_after_attempt(self._max_conflict_retries),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                min=self._retry_delay,
                max=self._retry_delay * (self._retry_multiplier**3),
            ),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "ledger_conflict_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _with_retry(
        self, operation: Callable[..., Awaitable[T]], *args: Any
    ) -> T:
        return await self._get_retry_decorator()(operation)(*args)

    async def record_movement(
        self,
        product_id: int,
        movement_type: MovementType | str,
        quantity: Any,
        details: dict[str, Any] | None = None,
        occurred_at: datetime | None = None,
    ) -> Movement:
        """
        Append a movement and update the product's stock atomically.

        Args:
            product_id: Product the movement belongs to
            movement_type: "in" or "out"
            quantity: Positive integer quantity
            details: Variant metadata matching the movement type
            occurred_at: Business instant (aware); defaults to now

        Returns:
            The stored movement

        Raises:
            InvalidQuantityError: Quantity is not a positive integer
            ValidationError: Bad type, details or timestamp
            ProductNotFoundError: Unknown product
            InsufficientStockError: Out exceeds current stock
        """
        try:
            movement_type = MovementType(movement_type)
        except ValueError:
            raise ValidationError(
                "movement_type", "Must be 'in' or 'out'", movement_type
            ) from None
        quantity = validate_quantity(quantity)
        details = details or {}
        validate_detail_keys(movement_type, details.keys())

        movement = Movement(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            occurred_at=ensure_utc(occurred_at, "occurred_at") if occurred_at else utc_now(),
            details=details_for(movement_type, details),
        )
        saved = await self._with_retry(self._store.append_movement, movement)

        logger.info(
            "movement_recorded",
            movement_id=saved.id,
            product_id=product_id,
            type=movement_type.value,
            qty=quantity,
        )
        return saved

    async def edit_movement(self, movement_id: int, patch: MovementPatch) -> Movement:
        """
        Patch a movement and recompute its product's stock.

        Raises:
            MovementNotFoundError: Unknown or deleted movement
            ValidationError: Empty or invalid patch
            InsufficientStockError: Change would leave negative stock
        """
        if patch.is_empty():
            raise ValidationError("patch", "At least one field must be provided")
        if patch.quantity is not None:
            validate_quantity(patch.quantity)
        if patch.occurred_at is not None:
            patch = patch.model_copy(
                update={"occurred_at": ensure_utc(patch.occurred_at, "occurred_at")}
            )

        current = await self._store.get_movement(movement_id)
        if current is None:
            raise MovementNotFoundError(movement_id)
        validate_detail_keys(current.movement_type, patch.details.keys())

        change = await self._with_retry(self._store.update_movement, movement_id, patch)
        self._check_change(change.movement.product_id, change.expected, change.recomputed)

        logger.info(
            "movement_edited",
            movement_id=movement_id,
            product_id=change.movement.product_id,
            current_stock=change.recomputed,
        )
        return change.movement

    async def delete_movement(self, movement_id: int) -> Movement:
        """
        Soft-delete a movement and recompute its product's stock.

        Raises:
            MovementNotFoundError: Unknown or already deleted movement
            InsufficientStockError: Removal would leave negative stock
        """
        change = await self._with_retry(self._store.delete_movement, movement_id)
        self._check_change(change.movement.product_id, change.expected, change.recomputed)

        logger.info(
            "movement_deleted",
            movement_id=movement_id,
            product_id=change.movement.product_id,
            current_stock=change.recomputed,
        )
        return change.movement

    async def recompute_aggregate(self, product_id: int) -> int:
        """Rewrite the product's cached stock from the ledger; return it."""
        violation = await self._recompute(product_id)
        if violation is not None:
            return violation.recomputed
        stock = await self._store.get_current_stock(product_id)
        return stock if stock is not None else 0

    async def verify_all(self) -> ReconciliationReport:
        """Recompute every product and report the ones that had drifted."""
        report = ReconciliationReport()
        for product_id in await self._store.list_product_ids():
            try:
                violation = await self._recompute(product_id)
            except ProductNotFoundError:
                # deleted between listing and recompute
                continue
            report.checked += 1
            if violation is not None:
                report.violations.append(violation)
        report.finished_at = utc_now()

        logger.info(
            "ledger_verified",
            checked=report.checked,
            violations=len(report.violations),
        )
        return report

    async def adjust_stock(
        self,
        product_id: int,
        target: Any,
        occurred_at: datetime | None = None,
    ) -> Movement | None:
        """
        Bring a product's stock to ``target`` with a compensating movement.

        Returns:
            The adjustment movement, or None when stock already equals target
        """
        if isinstance(target, bool) or not isinstance(target, int) or target < 0:
            raise ValidationError(
                "current_stock", "Must be a non-negative integer", target
            )
        current = await self._store.get_current_stock(product_id)
        if current is None:
            raise ProductNotFoundError(product_id)

        diff = target - current
        if diff == 0:
            return None
        if diff > 0:
            return await self.record_movement(
                product_id,
                MovementType.IN,
                diff,
                {"location": ADJUSTMENT_LABEL},
                occurred_at,
            )
        return await self.record_movement(
            product_id,
            MovementType.OUT,
            -diff,
            {"purpose": ADJUSTMENT_LABEL},
            occurred_at,
        )

    async def _recompute(self, product_id: int) -> ConsistencyViolation | None:
        cached, recomputed = await self._with_retry(
            self._store.recompute_aggregate, product_id
        )
        return self._check_change(product_id, cached, recomputed)

    def _check_change(
        self, product_id: int, expected: int, recomputed: int
    ) -> ConsistencyViolation | None:
        if expected == recomputed:
            return None

        error = ConsistencyViolationError(product_id, expected, recomputed)
        violation = ConsistencyViolation(
            product_id=product_id, expected=expected, recomputed=recomputed
        )
        self.violation_count += 1
        self.last_violation = violation
        logger.warning("consistency_violation", code=error.code, **error.details)
        return violation
