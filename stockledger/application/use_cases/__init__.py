"""Application use cases."""

from stockledger.application.use_cases.edit_movement import (
    DeleteMovementUseCase,
    EditMovementUseCase,
    MovementWriteResult,
)
from stockledger.application.use_cases.export_movements import (
    ExportMovementsUseCase,
    MovementExport,
)
from stockledger.application.use_cases.list_movements import (
    ListMovementsUseCase,
    MovementPage,
)
from stockledger.application.use_cases.manage_products import (
    CreateProductUseCase,
    GetProductUseCase,
    ListProductsUseCase,
    UpdateProductResult,
    UpdateProductUseCase,
)
from stockledger.application.use_cases.reconcile_ledger import ReconcileLedgerUseCase
from stockledger.application.use_cases.record_movement import (
    RecordMovementResult,
    RecordMovementUseCase,
)
from stockledger.application.use_cases.stock_summary import StockSummaryUseCase
from stockledger.application.use_cases.sync_events import (
    CreateMasterUseCase,
    ListSyncEventsUseCase,
    RecordSyncEventUseCase,
    SyncAllUseCase,
    SyncEventUseCase,
)

__all__ = [
    "CreateProductUseCase",
    "UpdateProductUseCase",
    "UpdateProductResult",
    "ListProductsUseCase",
    "GetProductUseCase",
    "RecordMovementUseCase",
    "RecordMovementResult",
    "EditMovementUseCase",
    "DeleteMovementUseCase",
    "MovementWriteResult",
    "ListMovementsUseCase",
    "MovementPage",
    "ExportMovementsUseCase",
    "MovementExport",
    "StockSummaryUseCase",
    "ReconcileLedgerUseCase",
    "RecordSyncEventUseCase",
    "ListSyncEventsUseCase",
    "SyncEventUseCase",
    "SyncAllUseCase",
    "CreateMasterUseCase",
]
