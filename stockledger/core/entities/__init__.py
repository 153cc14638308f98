"""Core domain entities."""

from stockledger.core.entities.movement import (
    IN_DETAIL_FIELDS,
    OUT_DETAIL_FIELDS,
    SORT_FIELDS,
    Movement,
    MovementChange,
    MovementFilters,
    MovementPatch,
    MovementQuery,
    MovementRecord,
    MovementType,
    StockInDetails,
    StockOutDetails,
    details_for,
)
from stockledger.core.entities.product import Product, ProductStockTotals
from stockledger.core.entities.reports import (
    ConsistencyViolation,
    ReconciliationReport,
    StockSummaryRow,
)
from stockledger.core.entities.sync_event import (
    SyncEvent,
    SyncOutcome,
    SyncStatus,
    SyncSummary,
    VoucherPayload,
    VoucherResult,
)

__all__ = [
    # Product
    "Product",
    "ProductStockTotals",
    # Movement
    "Movement",
    "MovementType",
    "MovementPatch",
    "MovementRecord",
    "MovementChange",
    "MovementFilters",
    "MovementQuery",
    "StockInDetails",
    "StockOutDetails",
    "IN_DETAIL_FIELDS",
    "OUT_DETAIL_FIELDS",
    "SORT_FIELDS",
    "details_for",
    # Sync
    "SyncEvent",
    "SyncStatus",
    "SyncOutcome",
    "SyncSummary",
    "VoucherPayload",
    "VoucherResult",
    # Reports
    "ConsistencyViolation",
    "ReconciliationReport",
    "StockSummaryRow",
]
