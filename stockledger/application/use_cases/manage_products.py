"""
Product Use Cases - create, update, list and inspect products.

Stock is never written here. A requested ``current_stock`` on update is
turned into a compensating adjustment movement by the aggregate service.
"""

from dataclasses import dataclass

from stockledger.application.dto.converters import movement_response, product_response
from stockledger.application.dto.requests import CreateProductRequest, UpdateProductRequest
from stockledger.application.dto.responses import (
    ProductDetailResponse,
    ProductListResponse,
    ProductStockResponse,
    UpdateProductResponse,
)
from stockledger.config import get_logger
from stockledger.core.entities.movement import Movement
from stockledger.core.entities.product import Product, ProductStockTotals
from stockledger.core.exceptions import ProductNotFoundError, ValidationError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services import AggregateService

logger = get_logger(__name__)


def _clean_name(field: str, value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValidationError(field, "Must not be blank", value)
    return cleaned


class _ProductUseCase:
    def __init__(self, ledger_store: ILedgerStore | None = None):
        self._ledger_store = ledger_store

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def _require_product(self, product_id: int) -> Product:
        store = await self._get_ledger_store()
        product = await store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product


class CreateProductUseCase(_ProductUseCase):
    """Create a product with zero stock."""

    async def execute(self, request: CreateProductRequest) -> Product:
        store = await self._get_ledger_store()
        product = await store.create_product(
            Product(
                name=_clean_name("name", request.name),
                unit=_clean_name("unit", request.unit),
                category=request.category.strip() if request.category else None,
                min_stock=request.min_stock,
            )
        )
        return product


@dataclass
class UpdateProductResult:
    """Updated product and the adjustment movement, if one was recorded."""

    product: Product
    adjustment: Movement | None = None


class UpdateProductUseCase(_ProductUseCase):
    """Update product metadata and optionally adjust stock to a target."""

    def __init__(
        self,
        ledger_store: ILedgerStore | None = None,
        aggregate_service: AggregateService | None = None,
    ):
        super().__init__(ledger_store)
        self._aggregate = aggregate_service

    async def _get_aggregate_service(self) -> AggregateService:
        if self._aggregate is None:
            from stockledger.application.services import get_aggregate_service

            self._aggregate = await get_aggregate_service()
        return self._aggregate

    async def execute(
        self, product_id: int, request: UpdateProductRequest
    ) -> UpdateProductResult:
        product = await self._require_product(product_id)
        store = await self._get_ledger_store()

        changes = {}
        if request.name is not None:
            changes["name"] = _clean_name("name", request.name)
        if request.unit is not None:
            changes["unit"] = _clean_name("unit", request.unit)
        if "category" in request.model_fields_set:
            changes["category"] = request.category.strip() if request.category else None
        if request.min_stock is not None:
            changes["min_stock"] = request.min_stock

        if changes:
            product = await store.update_product(product.model_copy(update=changes))
            logger.info("product_updated", product_id=product_id, fields=sorted(changes))

        adjustment = None
        if request.current_stock is not None:
            aggregate = await self._get_aggregate_service()
            adjustment = await aggregate.adjust_stock(
                product_id, request.current_stock, request.occurred_at
            )
            if adjustment is not None:
                product = await self._require_product(product_id)

        return UpdateProductResult(product=product, adjustment=adjustment)

    def to_response(self, result: UpdateProductResult) -> UpdateProductResponse:
        return UpdateProductResponse(
            product=product_response(result.product),
            adjustment=movement_response(result.adjustment) if result.adjustment else None,
        )


class ListProductsUseCase(_ProductUseCase):
    """List products by name, optionally filtered."""

    async def execute(
        self, search: str | None = None, limit: int = 100, offset: int = 0
    ) -> ProductListResponse:
        if not 1 <= limit <= 500:
            raise ValidationError("limit", "Must be between 1 and 500", limit)
        if offset < 0:
            raise ValidationError("offset", "Must not be negative", offset)

        store = await self._get_ledger_store()
        products, total = await store.list_products(
            search=search.strip() if search and search.strip() else None,
            limit=limit,
            offset=offset,
        )
        return ProductListResponse(
            items=[product_response(p) for p in products],
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(products) < total,
        )

    async def low_stock(self) -> ProductListResponse:
        """Products with a threshold set and stock strictly below it."""
        store = await self._get_ledger_store()
        products = await store.list_low_stock()
        return ProductListResponse(
            items=[product_response(p) for p in products],
            total=len(products),
            limit=len(products),
            offset=0,
            has_more=False,
        )


class GetProductUseCase(_ProductUseCase):
    """Product detail with all-time totals, and the bare stock reading."""

    async def execute(self, product_id: int) -> ProductDetailResponse:
        product = await self._require_product(product_id)
        store = await self._get_ledger_store()
        totals: ProductStockTotals = await store.movement_totals(product_id)
        return ProductDetailResponse(
            product=product_response(product),
            total_in=totals.total_in,
            total_out=totals.total_out,
        )

    async def stock(self, product_id: int) -> ProductStockResponse:
        product = await self._require_product(product_id)
        return ProductStockResponse(
            product_id=product_id,
            current_stock=product.current_stock,
            min_stock=product.min_stock,
            is_low_stock=product.is_low_stock,
        )
