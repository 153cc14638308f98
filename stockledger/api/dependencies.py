"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests swap these out
through ``app.dependency_overrides``.
"""

from stockledger.application.use_cases import (
    CreateMasterUseCase,
    CreateProductUseCase,
    DeleteMovementUseCase,
    EditMovementUseCase,
    ExportMovementsUseCase,
    GetProductUseCase,
    ListMovementsUseCase,
    ListProductsUseCase,
    ListSyncEventsUseCase,
    ReconcileLedgerUseCase,
    RecordMovementUseCase,
    RecordSyncEventUseCase,
    StockSummaryUseCase,
    SyncAllUseCase,
    SyncEventUseCase,
    UpdateProductUseCase,
)
from stockledger.infrastructure.storage.sqlite import ConnectionPool, get_pool


async def get_db_pool() -> ConnectionPool:
    """Get the shared SQLite connection pool."""
    return await get_pool()


# Products
def get_create_product_use_case() -> CreateProductUseCase:
    return CreateProductUseCase()


def get_update_product_use_case() -> UpdateProductUseCase:
    return UpdateProductUseCase()


def get_list_products_use_case() -> ListProductsUseCase:
    return ListProductsUseCase()


def get_product_use_case() -> GetProductUseCase:
    return GetProductUseCase()


# Movements
def get_record_movement_use_case() -> RecordMovementUseCase:
    return RecordMovementUseCase()


def get_edit_movement_use_case() -> EditMovementUseCase:
    return EditMovementUseCase()


def get_delete_movement_use_case() -> DeleteMovementUseCase:
    return DeleteMovementUseCase()


def get_list_movements_use_case() -> ListMovementsUseCase:
    return ListMovementsUseCase()


def get_export_movements_use_case() -> ExportMovementsUseCase:
    return ExportMovementsUseCase()


def get_stock_summary_use_case() -> StockSummaryUseCase:
    return StockSummaryUseCase()


# Ledger
def get_reconcile_ledger_use_case() -> ReconcileLedgerUseCase:
    return ReconcileLedgerUseCase()


# Sync
def get_record_sync_event_use_case() -> RecordSyncEventUseCase:
    return RecordSyncEventUseCase()


def get_list_sync_events_use_case() -> ListSyncEventsUseCase:
    return ListSyncEventsUseCase()


def get_sync_event_use_case() -> SyncEventUseCase:
    return SyncEventUseCase()


def get_sync_all_use_case() -> SyncAllUseCase:
    return SyncAllUseCase()


def get_create_master_use_case() -> CreateMasterUseCase:
    return CreateMasterUseCase()
