"""Unit tests for product use cases."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import CreateProductRequest, UpdateProductRequest
from stockledger.application.use_cases.manage_products import (
    CreateProductUseCase,
    GetProductUseCase,
    ListProductsUseCase,
    UpdateProductUseCase,
)
from stockledger.core.entities import (
    Movement,
    MovementType,
    Product,
    ProductStockTotals,
    StockInDetails,
)
from stockledger.core.exceptions import ProductNotFoundError, ValidationError


def _product(**kwargs) -> Product:
    data = {"id": 1, "name": "Cotton Yarn", "unit": "kg", "current_stock": 10}
    data.update(kwargs)
    return Product(**data)


@pytest.fixture
def store() -> AsyncMock:
    store = AsyncMock()
    store.get_product.return_value = _product()
    store.create_product.side_effect = lambda p: p.model_copy(update={"id": 7})
    store.update_product.side_effect = lambda p: p
    store.list_products.return_value = ([_product()], 3)
    store.movement_totals.return_value = ProductStockTotals(product_id=1, total_in=30, total_out=20)
    return store


class TestCreateProduct:
    async def test_trims_and_creates(self, store: AsyncMock):
        product = await CreateProductUseCase(store).execute(
            CreateProductRequest(name="  Cotton Yarn ", unit="kg", category=" Raw ")
        )
        assert product.id == 7
        assert product.name == "Cotton Yarn"
        assert product.category == "Raw"
        assert product.current_stock == 0

    async def test_blank_name_rejected(self, store: AsyncMock):
        with pytest.raises(ValidationError):
            await CreateProductUseCase(store).execute(CreateProductRequest(name="   ", unit="kg"))


class TestUpdateProduct:
    async def test_metadata_only(self, store: AsyncMock):
        aggregate = AsyncMock()
        result = await UpdateProductUseCase(store, aggregate).execute(
            1, UpdateProductRequest(min_stock=5)
        )
        assert result.product.min_stock == 5
        assert result.adjustment is None
        aggregate.adjust_stock.assert_not_called()

    async def test_stock_target_goes_through_adjustment(self, store: AsyncMock):
        aggregate = AsyncMock()
        aggregate.adjust_stock.return_value = Movement(
            id=3,
            product_id=1,
            movement_type=MovementType.IN,
            quantity=5,
            occurred_at=datetime(2025, 1, 1, tzinfo=UTC),
            details=StockInDetails(location="Stock Adjustment"),
        )
        use_case = UpdateProductUseCase(store, aggregate)
        result = await use_case.execute(1, UpdateProductRequest(current_stock=15))

        aggregate.adjust_stock.assert_awaited_once_with(1, 15, None)
        store.update_product.assert_not_called()
        response = use_case.to_response(result)
        assert response.adjustment is not None
        assert response.adjustment.quantity == 5

    async def test_unknown_product(self, store: AsyncMock):
        store.get_product.return_value = None
        with pytest.raises(ProductNotFoundError):
            await UpdateProductUseCase(store, AsyncMock()).execute(
                1, UpdateProductRequest(name="X")
            )


class TestReadProducts:
    async def test_list_has_more(self, store: AsyncMock):
        response = await ListProductsUseCase(store).execute(limit=1)
        assert response.total == 3
        assert response.has_more is True

    async def test_list_rejects_bad_limit(self, store: AsyncMock):
        with pytest.raises(ValidationError):
            await ListProductsUseCase(store).execute(limit=0)

    async def test_detail_totals(self, store: AsyncMock):
        response = await GetProductUseCase(store).execute(1)
        assert response.total_in == 30
        assert response.total_out == 20
        assert response.product.current_stock == 10

    async def test_stock(self, store: AsyncMock):
        store.get_product.return_value = _product(min_stock=20)
        response = await GetProductUseCase(store).stock(1)
        assert response.is_low_stock is True
