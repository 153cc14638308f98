"""Record Movement Use Case - stock-in or stock-out through the aggregate service."""

from dataclasses import dataclass

from stockledger.application.dto.converters import movement_response
from stockledger.application.dto.requests import RecordMovementRequest
from stockledger.application.dto.responses import MovementWriteResponse
from stockledger.core.entities.movement import Movement
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services import AggregateService


@dataclass
class RecordMovementResult:
    """Result of recording a movement."""

    movement: Movement
    current_stock: int


class RecordMovementUseCase:
    """Record a movement and report the product's resulting stock."""

    def __init__(
        self,
        aggregate_service: AggregateService | None = None,
        ledger_store: ILedgerStore | None = None,
    ):
        self._aggregate = aggregate_service
        self._ledger_store = ledger_store

    async def _get_aggregate_service(self) -> AggregateService:
        if self._aggregate is None:
            from stockledger.application.services import get_aggregate_service

            self._aggregate = await get_aggregate_service()
        return self._aggregate

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def execute(self, request: RecordMovementRequest) -> RecordMovementResult:
        """Execute record movement use case."""
        aggregate = await self._get_aggregate_service()
        movement = await aggregate.record_movement(
            product_id=request.product_id,
            movement_type=request.movement_type,
            quantity=request.quantity,
            details=request.detail_fields(),
            occurred_at=request.occurred_at,
        )

        store = await self._get_ledger_store()
        stock = await store.get_current_stock(request.product_id)
        return RecordMovementResult(movement=movement, current_stock=stock or 0)

    def to_response(self, result: RecordMovementResult) -> MovementWriteResponse:
        """Convert result to API response."""
        return MovementWriteResponse(
            movement=movement_response(result.movement),
            current_stock=result.current_stock,
        )
