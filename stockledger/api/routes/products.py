"""Product endpoints."""

from fastapi import APIRouter, Depends, status

from stockledger.api.dependencies import (
    get_create_product_use_case,
    get_list_products_use_case,
    get_product_use_case,
    get_update_product_use_case,
)
from stockledger.application.dto.converters import product_response
from stockledger.application.dto.requests import CreateProductRequest, UpdateProductRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
    ProductStockResponse,
    UpdateProductResponse,
)
from stockledger.application.use_cases import (
    CreateProductUseCase,
    GetProductUseCase,
    ListProductsUseCase,
    UpdateProductUseCase,
)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    use_case: CreateProductUseCase = Depends(get_create_product_use_case),
) -> ProductResponse:
    """Create a product with zero stock."""
    return product_response(await use_case.execute(request))


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
    use_case: ListProductsUseCase = Depends(get_list_products_use_case),
) -> ProductListResponse:
    """List products ordered by name."""
    return await use_case.execute(search=search, limit=limit, offset=offset)


@router.get("/low-stock", response_model=ProductListResponse)
async def list_low_stock(
    use_case: ListProductsUseCase = Depends(get_list_products_use_case),
) -> ProductListResponse:
    """Products below their minimum stock threshold."""
    return await use_case.low_stock()


@router.get(
    "/{product_id}",
    response_model=ProductDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: int,
    use_case: GetProductUseCase = Depends(get_product_use_case),
) -> ProductDetailResponse:
    """Product with all-time total in and total out."""
    return await use_case.execute(product_id)


@router.patch(
    "/{product_id}",
    response_model=UpdateProductResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_product(
    product_id: int,
    request: UpdateProductRequest,
    use_case: UpdateProductUseCase = Depends(get_update_product_use_case),
) -> UpdateProductResponse:
    """Update metadata; a ``current_stock`` target records an adjustment movement."""
    result = await use_case.execute(product_id, request)
    return use_case.to_response(result)


@router.get(
    "/{product_id}/stock",
    response_model=ProductStockResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product_stock(
    product_id: int,
    use_case: GetProductUseCase = Depends(get_product_use_case),
) -> ProductStockResponse:
    """Current cached stock."""
    return await use_case.stock(product_id)
