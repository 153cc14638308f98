"""
Sync Event Use Cases - record production readings and push them to the
accounting system.

Sync is always an explicit user action; nothing here retries on its own.
"""

from stockledger.application.dto.converters import outcome_response, sync_event_response
from stockledger.application.dto.requests import (
    CreateGodownRequest,
    CreateStockItemRequest,
    CreateUnitRequest,
    RecordSyncEventRequest,
)
from stockledger.application.dto.responses import (
    ConnectionTestResponse,
    MasterResultResponse,
    SyncEventListResponse,
    SyncEventResponse,
    SyncOutcomeResponse,
    SyncSummaryResponse,
)
from stockledger.config import get_settings
from stockledger.core.entities.sync_event import SyncStatus, VoucherResult
from stockledger.core.exceptions import ValidationError
from stockledger.core.interfaces.connector import IAccountingConnector
from stockledger.core.interfaces.sync_event_store import ISyncEventStore
from stockledger.core.services import SyncQueueManager


class _SyncUseCase:
    def __init__(self, manager: SyncQueueManager | None = None):
        self._manager = manager

    async def _get_manager(self) -> SyncQueueManager:
        if self._manager is None:
            from stockledger.application.services import get_sync_queue_manager

            self._manager = await get_sync_queue_manager()
        return self._manager


class RecordSyncEventUseCase(_SyncUseCase):
    """Record a weight reading as a pending sync event."""

    async def execute(self, request: RecordSyncEventRequest) -> SyncEventResponse:
        manager = await self._get_manager()
        event = await manager.record_event(
            product_id=request.product_id,
            gross_weight=request.gross_weight,
            tare_weight=request.tare_weight,
            unit=request.unit,
            roll_no=request.roll_no,
            recorded_by=request.recorded_by,
            recorded_at=request.recorded_at,
        )
        return sync_event_response(event)


class ListSyncEventsUseCase:
    """List sync events, optionally by status."""

    def __init__(self, event_store: ISyncEventStore | None = None):
        self._event_store = event_store

    async def _get_event_store(self) -> ISyncEventStore:
        if self._event_store is None:
            from stockledger.infrastructure.storage.sqlite import get_sync_event_store

            self._event_store = await get_sync_event_store()
        return self._event_store

    async def execute(
        self, status: str | None = None, limit: int = 100, offset: int = 0
    ) -> SyncEventListResponse:
        sync_status = None
        if status:
            try:
                sync_status = SyncStatus(status.lower())
            except ValueError:
                allowed = ", ".join(s.value for s in SyncStatus)
                raise ValidationError("status", f"Must be one of: {allowed}", status) from None
        if not 1 <= limit <= 500:
            raise ValidationError("limit", "Must be between 1 and 500", limit)

        store = await self._get_event_store()
        events = await store.list_events(status=sync_status, limit=limit, offset=offset)
        total = await store.count_events(status=sync_status)
        return SyncEventListResponse(
            items=[sync_event_response(e) for e in events],
            total=total,
            limit=limit,
            offset=offset,
        )


class SyncEventUseCase(_SyncUseCase):
    """Sync or retry a single event."""

    async def execute(self, event_id: int) -> SyncOutcomeResponse:
        manager = await self._get_manager()
        return outcome_response(await manager.sync_one(event_id))

    async def retry(self, event_id: int) -> SyncEventResponse:
        manager = await self._get_manager()
        return sync_event_response(await manager.retry(event_id))


class SyncAllUseCase(_SyncUseCase):
    """Attempt every pending and failed event once."""

    async def execute(self) -> SyncSummaryResponse:
        manager = await self._get_manager()
        summary = await manager.sync_all()
        return SyncSummaryResponse(
            attempted=summary.attempted,
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
            outcomes=[outcome_response(o) for o in summary.outcomes],
        )

    async def test_connection(self) -> ConnectionTestResponse:
        manager = await self._get_manager()
        reachable = await manager.test_connection()
        return ConnectionTestResponse(reachable=reachable, url=get_settings().tally.url)


class CreateMasterUseCase:
    """Create stock item, godown and unit masters in the accounting system."""

    def __init__(self, connector: IAccountingConnector | None = None):
        self._connector = connector

    def _get_connector(self) -> IAccountingConnector:
        if self._connector is None:
            from stockledger.infrastructure.tally import get_tally_connector

            self._connector = get_tally_connector()
        return self._connector

    @staticmethod
    def _response(result: VoucherResult) -> MasterResultResponse:
        return MasterResultResponse(success=result.success, message=result.message)

    async def stock_item(self, request: CreateStockItemRequest) -> MasterResultResponse:
        result = await self._get_connector().create_stock_item(
            request.name.strip(), request.unit.strip()
        )
        return self._response(result)

    async def godown(self, request: CreateGodownRequest) -> MasterResultResponse:
        return self._response(await self._get_connector().create_godown(request.name.strip()))

    async def unit(self, request: CreateUnitRequest) -> MasterResultResponse:
        result = await self._get_connector().create_unit(
            request.symbol.strip(), request.formal_name
        )
        return self._response(result)
