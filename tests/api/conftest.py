"""API test fixtures: the app with use cases swapped for mocks."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api.main import app
from stockledger.core.entities import Movement, MovementType, Product, StockOutDetails

NOW = datetime(2025, 1, 1, 10, 0, tzinfo=UTC)


@pytest.fixture
def override() -> Callable[[Callable, Any], None]:
    """Register a dependency override for the duration of the test."""

    def _override(dependency: Callable, value: Any) -> None:
        app.dependency_overrides[dependency] = lambda: value

    return _override


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def product() -> Product:
    return Product(
        id=1,
        name="Cotton Yarn",
        unit="kg",
        min_stock=5,
        current_stock=20,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def out_movement() -> Movement:
    return Movement(
        id=3,
        product_id=1,
        movement_type=MovementType.OUT,
        quantity=4,
        occurred_at=NOW,
        inserted_at=NOW,
        details=StockOutDetails(department="Weaving"),
    )
