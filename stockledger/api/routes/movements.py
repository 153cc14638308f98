"""Stock movement endpoints: record, correct, browse and export."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_delete_movement_use_case,
    get_edit_movement_use_case,
    get_export_movements_use_case,
    get_list_movements_use_case,
    get_record_movement_use_case,
    get_stock_summary_use_case,
)
from stockledger.application.dto.requests import RecordMovementRequest, UpdateMovementRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    MovementExportResponse,
    MovementPageResponse,
    MovementWriteResponse,
    StockSummaryResponse,
)
from stockledger.application.use_cases import (
    DeleteMovementUseCase,
    EditMovementUseCase,
    ExportMovementsUseCase,
    ListMovementsUseCase,
    RecordMovementUseCase,
    StockSummaryUseCase,
)
from stockledger.core.entities.movement import MovementFilters

router = APIRouter(tags=["movements"])

WRITE_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def movement_filters(
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    supplier: str | None = None,
    invoice_no: str | None = None,
    location: str | None = None,
    department: str | None = None,
    issued_by: str | None = None,
    issued_to: str | None = None,
    purpose: str | None = None,
) -> MovementFilters:
    """History filters from query parameters."""
    details = {
        "supplier": supplier,
        "invoice_no": invoice_no,
        "location": location,
        "department": department,
        "issued_by": issued_by,
        "issued_to": issued_to,
        "purpose": purpose,
    }
    return MovementFilters(
        date_from=date_from,
        date_to=date_to,
        search=search,
        details={k: v for k, v in details.items() if v is not None},
    )


@router.post(
    "/api/movements",
    response_model=MovementWriteResponse,
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_ERRORS,
)
async def record_movement(
    request: RecordMovementRequest,
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
) -> MovementWriteResponse:
    """Record a stock-in or stock-out; Outs never drive stock below zero."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.patch(
    "/api/movements/{movement_id}",
    response_model=MovementWriteResponse,
    responses=WRITE_ERRORS,
)
async def edit_movement(
    movement_id: int,
    request: UpdateMovementRequest,
    use_case: EditMovementUseCase = Depends(get_edit_movement_use_case),
) -> MovementWriteResponse:
    """Correct a movement and recompute the product's stock."""
    result = await use_case.execute(movement_id, request)
    return use_case.to_response(result)


@router.delete(
    "/api/movements/{movement_id}",
    response_model=MovementWriteResponse,
    responses=WRITE_ERRORS,
)
async def delete_movement(
    movement_id: int,
    use_case: DeleteMovementUseCase = Depends(get_delete_movement_use_case),
) -> MovementWriteResponse:
    """Soft-delete a movement and recompute the product's stock."""
    result = await use_case.execute(movement_id)
    return use_case.to_response(result)


@router.get(
    "/api/products/{product_id}/movements/{movement_type}",
    response_model=MovementPageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_movements(
    product_id: int,
    movement_type: str,
    page: int = 1,
    limit: int = Query(default=10),
    sort_by: str = "date",
    sort_order: str = "desc",
    filters: MovementFilters = Depends(movement_filters),
    use_case: ListMovementsUseCase = Depends(get_list_movements_use_case),
) -> MovementPageResponse:
    """Paginated history; Out rows carry the stock remaining after them."""
    result = await use_case.execute(
        product_id,
        movement_type,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        filters=filters,
    )
    return use_case.to_response(result)


@router.get(
    "/api/movements/export",
    response_model=MovementExportResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def export_movements(
    movement_type: str,
    product_id: int | None = None,
    sort_by: str = "date",
    sort_order: str = "desc",
    filters: MovementFilters = Depends(movement_filters),
    use_case: ExportMovementsUseCase = Depends(get_export_movements_use_case),
) -> MovementExportResponse:
    """All matching movements with product names."""
    result = await use_case.execute(
        movement_type,
        product_id=product_id,
        sort_by=sort_by,
        sort_order=sort_order,
        filters=filters,
    )
    return use_case.to_response(result)


@router.get(
    "/api/stock/summary",
    response_model=StockSummaryResponse,
    responses={400: {"model": ErrorResponse}},
)
async def stock_summary(
    date_from: date | None = None,
    date_to: date | None = None,
    use_case: StockSummaryUseCase = Depends(get_stock_summary_use_case),
) -> StockSummaryResponse:
    """Per-product In and Out totals for a business date range."""
    return await use_case.execute(date_from, date_to)
