"""Accounting sync endpoints."""

from fastapi import APIRouter, Depends, status

from stockledger.api.dependencies import (
    get_create_master_use_case,
    get_list_sync_events_use_case,
    get_record_sync_event_use_case,
    get_sync_all_use_case,
    get_sync_event_use_case,
)
from stockledger.application.dto.requests import (
    CreateGodownRequest,
    CreateStockItemRequest,
    CreateUnitRequest,
    RecordSyncEventRequest,
)
from stockledger.application.dto.responses import (
    ConnectionTestResponse,
    ErrorResponse,
    MasterResultResponse,
    SyncEventListResponse,
    SyncEventResponse,
    SyncOutcomeResponse,
    SyncSummaryResponse,
)
from stockledger.application.use_cases import (
    CreateMasterUseCase,
    ListSyncEventsUseCase,
    RecordSyncEventUseCase,
    SyncAllUseCase,
    SyncEventUseCase,
)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.post(
    "/events",
    response_model=SyncEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_event(
    request: RecordSyncEventRequest,
    use_case: RecordSyncEventUseCase = Depends(get_record_sync_event_use_case),
) -> SyncEventResponse:
    """Record a weight reading as a pending sync event."""
    return await use_case.execute(request)


@router.get(
    "/events",
    response_model=SyncEventListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_events(
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
    use_case: ListSyncEventsUseCase = Depends(get_list_sync_events_use_case),
) -> SyncEventListResponse:
    """List sync events, newest first."""
    return await use_case.execute(status=status, limit=limit, offset=offset)


@router.post(
    "/events/{event_id}/sync",
    response_model=SyncOutcomeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def sync_event(
    event_id: int,
    use_case: SyncEventUseCase = Depends(get_sync_event_use_case),
) -> SyncOutcomeResponse:
    """Push one pending event to Tally. Connector failures come back as a failed outcome."""
    return await use_case.execute(event_id)


@router.post(
    "/events/{event_id}/retry",
    response_model=SyncEventResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def retry_event(
    event_id: int,
    use_case: SyncEventUseCase = Depends(get_sync_event_use_case),
) -> SyncEventResponse:
    """Return a failed event to pending."""
    return await use_case.retry(event_id)


@router.post("/sync-all", response_model=SyncSummaryResponse)
async def sync_all(
    use_case: SyncAllUseCase = Depends(get_sync_all_use_case),
) -> SyncSummaryResponse:
    """Attempt every pending and failed event once."""
    return await use_case.execute()


@router.post("/test-connection", response_model=ConnectionTestResponse)
async def test_connection(
    use_case: SyncAllUseCase = Depends(get_sync_all_use_case),
) -> ConnectionTestResponse:
    """Check whether the Tally agent answers."""
    return await use_case.test_connection()


@router.post("/masters/stock-item", response_model=MasterResultResponse)
async def create_stock_item(
    request: CreateStockItemRequest,
    use_case: CreateMasterUseCase = Depends(get_create_master_use_case),
) -> MasterResultResponse:
    return await use_case.stock_item(request)


@router.post("/masters/godown", response_model=MasterResultResponse)
async def create_godown(
    request: CreateGodownRequest,
    use_case: CreateMasterUseCase = Depends(get_create_master_use_case),
) -> MasterResultResponse:
    return await use_case.godown(request)


@router.post("/masters/unit", response_model=MasterResultResponse)
async def create_unit(
    request: CreateUnitRequest,
    use_case: CreateMasterUseCase = Depends(get_create_master_use_case),
) -> MasterResultResponse:
    return await use_case.unit(request)
