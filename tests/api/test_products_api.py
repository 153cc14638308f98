"""API tests for product endpoints."""

from unittest.mock import AsyncMock

from httpx import AsyncClient

from stockledger.api.dependencies import (
    get_create_product_use_case,
    get_product_use_case,
    get_update_product_use_case,
)
from stockledger.application.dto.converters import movement_response, product_response
from stockledger.application.dto.responses import ProductStockResponse, UpdateProductResponse
from stockledger.application.use_cases import (
    CreateProductUseCase,
    GetProductUseCase,
    UpdateProductUseCase,
)
from stockledger.core.exceptions import DatabaseError, ProductNotFoundError, ValidationError


class TestProductsAPI:
    async def test_create_returns_201(self, client: AsyncClient, override, product):
        use_case = AsyncMock(spec=CreateProductUseCase)
        use_case.execute.return_value = product
        override(get_create_product_use_case, use_case)

        response = await client.post("/api/products", json={"name": "Cotton Yarn", "unit": "kg"})

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert data["current_stock"] == 20
        assert data["is_low_stock"] is False

    async def test_create_schema_error_is_422(self, client: AsyncClient, override):
        override(get_create_product_use_case, AsyncMock(spec=CreateProductUseCase))
        response = await client.post("/api/products", json={"unit": "kg"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_blank_name_is_400(self, client: AsyncClient, override):
        use_case = AsyncMock(spec=CreateProductUseCase)
        use_case.execute.side_effect = ValidationError("name", "Must not be blank", " ")
        override(get_create_product_use_case, use_case)

        response = await client.post("/api/products", json={"name": " ", "unit": "kg"})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "name"

    async def test_unknown_product_is_404(self, client: AsyncClient, override):
        use_case = AsyncMock(spec=GetProductUseCase)
        use_case.stock.side_effect = ProductNotFoundError(99)
        override(get_product_use_case, use_case)

        response = await client.get("/api/products/99/stock")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "PRODUCT_NOT_FOUND"
        assert body["path"] == "/api/products/99/stock"

    async def test_database_error_is_500(self, client: AsyncClient, override):
        use_case = AsyncMock(spec=GetProductUseCase)
        use_case.stock.side_effect = DatabaseError("get_product", "disk I/O error")
        override(get_product_use_case, use_case)

        response = await client.get("/api/products/1/stock")

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "DATABASE_ERROR"
        assert body["hint"] == "A database operation failed. Check server logs."

    async def test_stock(self, client: AsyncClient, override):
        use_case = AsyncMock(spec=GetProductUseCase)
        use_case.stock.return_value = ProductStockResponse(
            product_id=1, current_stock=3, min_stock=5, is_low_stock=True
        )
        override(get_product_use_case, use_case)

        response = await client.get("/api/products/1/stock")

        assert response.status_code == 200
        assert response.json()["is_low_stock"] is True

    async def test_patch_with_adjustment(self, client: AsyncClient, override, product, out_movement):
        use_case = AsyncMock(spec=UpdateProductUseCase)
        use_case.to_response.return_value = UpdateProductResponse(
            product=product_response(product),
            adjustment=movement_response(out_movement),
        )
        override(get_update_product_use_case, use_case)

        response = await client.patch("/api/products/1", json={"current_stock": 16})

        assert response.status_code == 200
        assert response.json()["adjustment"]["quantity"] == 4
        request = use_case.execute.call_args[0][1]
        assert request.current_stock == 16
