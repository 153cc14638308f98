"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from stockledger.application.dto.requests import (
    CreateGodownRequest,
    CreateProductRequest,
    CreateStockItemRequest,
    CreateUnitRequest,
    RecordMovementRequest,
    RecordSyncEventRequest,
    UpdateMovementRequest,
    UpdateProductRequest,
)
from stockledger.application.dto.responses import (
    ConnectionTestResponse,
    ErrorResponse,
    HealthResponse,
    LedgerHealthResponse,
    MasterResultResponse,
    MovementExportResponse,
    MovementPageResponse,
    MovementResponse,
    MovementWriteResponse,
    PaginationResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
    ProductStockResponse,
    ReconciliationResponse,
    RecomputeResponse,
    StockSummaryResponse,
    SyncEventListResponse,
    SyncEventResponse,
    SyncOutcomeResponse,
    SyncSummaryResponse,
    UpdateProductResponse,
)

__all__ = [
    # Requests
    "CreateProductRequest",
    "UpdateProductRequest",
    "RecordMovementRequest",
    "UpdateMovementRequest",
    "RecordSyncEventRequest",
    "CreateStockItemRequest",
    "CreateGodownRequest",
    "CreateUnitRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "LedgerHealthResponse",
    "PaginationResponse",
    "ProductResponse",
    "ProductListResponse",
    "ProductDetailResponse",
    "ProductStockResponse",
    "UpdateProductResponse",
    "MovementResponse",
    "MovementWriteResponse",
    "MovementPageResponse",
    "MovementExportResponse",
    "StockSummaryResponse",
    "ReconciliationResponse",
    "RecomputeResponse",
    "SyncEventResponse",
    "SyncEventListResponse",
    "SyncOutcomeResponse",
    "SyncSummaryResponse",
    "ConnectionTestResponse",
    "MasterResultResponse",
]
