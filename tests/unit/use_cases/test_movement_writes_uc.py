"""Unit tests for the movement write use cases."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import RecordMovementRequest, UpdateMovementRequest
from stockledger.application.use_cases.edit_movement import (
    DeleteMovementUseCase,
    EditMovementUseCase,
)
from stockledger.application.use_cases.record_movement import RecordMovementUseCase
from stockledger.core.entities import Movement, MovementType, StockOutDetails
from stockledger.core.exceptions import InsufficientStockError

OUT = Movement(
    id=5,
    product_id=1,
    movement_type=MovementType.OUT,
    quantity=4,
    occurred_at=datetime(2025, 1, 1, tzinfo=UTC),
    details=StockOutDetails(department="Weaving"),
)


@pytest.fixture
def aggregate() -> AsyncMock:
    aggregate = AsyncMock()
    aggregate.record_movement.return_value = OUT
    aggregate.edit_movement.return_value = OUT
    aggregate.delete_movement.return_value = OUT
    return aggregate


@pytest.fixture
def store() -> AsyncMock:
    store = AsyncMock()
    store.get_current_stock.return_value = 6
    return store


async def test_record_passes_only_sent_details(aggregate: AsyncMock, store: AsyncMock):
    use_case = RecordMovementUseCase(aggregate, store)
    result = await use_case.execute(
        RecordMovementRequest(product_id=1, movement_type="out", quantity=4, department="Weaving")
    )

    kwargs = aggregate.record_movement.call_args.kwargs
    assert kwargs["details"] == {"department": "Weaving"}
    assert kwargs["movement_type"] == "out"
    response = use_case.to_response(result)
    assert response.current_stock == 6
    assert response.movement.details["department"] == "Weaving"


async def test_record_propagates_domain_errors(aggregate: AsyncMock, store: AsyncMock):
    aggregate.record_movement.side_effect = InsufficientStockError(1, requested=4, available=0)
    with pytest.raises(InsufficientStockError):
        await RecordMovementUseCase(aggregate, store).execute(
            RecordMovementRequest(product_id=1, movement_type="out", quantity=4)
        )
    store.get_current_stock.assert_not_called()


async def test_edit_builds_patch_from_sent_fields(aggregate: AsyncMock, store: AsyncMock):
    await EditMovementUseCase(aggregate, store).execute(
        5, UpdateMovementRequest.model_validate({"quantity": 3, "purpose": None})
    )

    movement_id, patch = aggregate.edit_movement.call_args[0]
    assert movement_id == 5
    assert patch.quantity == 3
    assert patch.details == {"purpose": None}


async def test_delete_reports_stock(aggregate: AsyncMock, store: AsyncMock):
    result = await DeleteMovementUseCase(aggregate, store).execute(5)
    assert result.current_stock == 6
    aggregate.delete_movement.assert_awaited_once_with(5)
