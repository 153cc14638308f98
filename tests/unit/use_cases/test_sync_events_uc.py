"""Unit tests for sync use cases."""

from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import CreateUnitRequest, RecordSyncEventRequest
from stockledger.application.use_cases.sync_events import (
    CreateMasterUseCase,
    ListSyncEventsUseCase,
    RecordSyncEventUseCase,
    SyncAllUseCase,
    SyncEventUseCase,
)
from stockledger.core.entities import (
    SyncEvent,
    SyncOutcome,
    SyncStatus,
    SyncSummary,
    VoucherPayload,
    VoucherResult,
)
from stockledger.core.exceptions import ValidationError


def _event() -> SyncEvent:
    return SyncEvent(
        id=1,
        product_id=1,
        payload=VoucherPayload(
            item_name="Cotton Yarn", quantity=9.0, gross_weight=10.0, tare_weight=1.0, roll_no="R-1"
        ),
    )


class TestSyncUseCases:
    async def test_record_passes_weights(self):
        manager = AsyncMock()
        manager.record_event.return_value = _event()
        response = await RecordSyncEventUseCase(manager).execute(
            RecordSyncEventRequest(product_id=1, gross_weight=10.0, tare_weight=1.0)
        )
        assert response.sync_status == "pending"
        assert manager.record_event.call_args.kwargs["gross_weight"] == 10.0

    async def test_sync_one(self):
        manager = AsyncMock()
        manager.sync_one.return_value = SyncOutcome(
            event_id=1, status=SyncStatus.SYNCED, voucher_id="9", connector_called=True
        )
        response = await SyncEventUseCase(manager).execute(1)
        assert response.status == "synced"
        assert response.voucher_id == "9"

    async def test_sync_all_summary(self):
        manager = AsyncMock()
        manager.sync_all.return_value = SyncSummary(attempted=2, succeeded=1, failed=1)
        response = await SyncAllUseCase(manager).execute()
        assert (response.attempted, response.succeeded, response.failed) == (2, 1, 1)

    async def test_list_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            await ListSyncEventsUseCase(AsyncMock()).execute(status="done")

    async def test_list_filters_status(self):
        store = AsyncMock()
        store.list_events.return_value = [_event()]
        store.count_events.return_value = 1
        response = await ListSyncEventsUseCase(store).execute(status="PENDING")
        assert store.list_events.call_args.kwargs["status"] == SyncStatus.PENDING
        assert response.total == 1

    async def test_list_total_counts_all_matching_events(self):
        store = AsyncMock()
        store.list_events.return_value = [_event(), _event()]
        store.count_events.return_value = 7

        response = await ListSyncEventsUseCase(store).execute(limit=2, offset=4)

        store.count_events.assert_awaited_once_with(status=None)
        assert len(response.items) == 2
        assert (response.total, response.limit, response.offset) == (7, 2, 4)

    async def test_create_unit_master(self):
        connector = AsyncMock()
        connector.create_unit.return_value = VoucherResult(success=True, message="Created")
        response = await CreateMasterUseCase(connector).unit(CreateUnitRequest(symbol=" kg "))
        connector.create_unit.assert_awaited_once_with("kg", None)
        assert response.success is True
