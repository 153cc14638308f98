"""Edit and Delete Movement Use Cases - ledger corrections with full recompute."""

from dataclasses import dataclass

from stockledger.application.dto.converters import movement_response
from stockledger.application.dto.requests import UpdateMovementRequest
from stockledger.application.dto.responses import MovementWriteResponse
from stockledger.core.entities.movement import Movement, MovementPatch
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services import AggregateService


@dataclass
class MovementWriteResult:
    """Movement after the write and the product's stock."""

    movement: Movement
    current_stock: int


class _MovementWriteUseCase:
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

    async def _result(self, movement: Movement) -> MovementWriteResult:
        store = await self._get_ledger_store()
        stock = await store.get_current_stock(movement.product_id)
        return MovementWriteResult(movement=movement, current_stock=stock or 0)

    def to_response(self, result: MovementWriteResult) -> MovementWriteResponse:
        """Convert result to API response."""
        return MovementWriteResponse(
            movement=movement_response(result.movement),
            current_stock=result.current_stock,
        )


class EditMovementUseCase(_MovementWriteUseCase):
    """Patch quantity, timestamp or details of a movement."""

    async def execute(
        self, movement_id: int, request: UpdateMovementRequest
    ) -> MovementWriteResult:
        """Execute edit movement use case."""
        patch = MovementPatch(
            quantity=request.quantity,
            occurred_at=request.occurred_at,
            details=request.detail_fields(),
        )
        aggregate = await self._get_aggregate_service()
        movement = await aggregate.edit_movement(movement_id, patch)
        return await self._result(movement)


class DeleteMovementUseCase(_MovementWriteUseCase):
    """Soft-delete a movement."""

    async def execute(self, movement_id: int) -> MovementWriteResult:
        """Execute delete movement use case."""
        aggregate = await self._get_aggregate_service()
        movement = await aggregate.delete_movement(movement_id)
        return await self._result(movement)
