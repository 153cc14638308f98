"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from stockledger.core.timestamps import utc_now


class ProviderHealthResponse(BaseModel):
    """Dependency health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None
    accounting: ProviderHealthResponse | None = None


class LedgerHealthResponse(BaseModel):
    """Aggregate consistency counters."""

    status: str
    violation_count: int
    last_violation: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] | None = Field(default=None, description="Structured error context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=utc_now)


class PaginationResponse(BaseModel):
    """Page metadata for history listings."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


# --- Products ---


class ProductResponse(BaseModel):
    """Product response DTO."""

    id: int
    name: str
    unit: str
    category: str | None = None
    min_stock: int
    current_stock: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Paginated product list."""

    items: list[ProductResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class ProductDetailResponse(BaseModel):
    """Product with all-time movement totals."""

    product: ProductResponse
    total_in: int
    total_out: int


class ProductStockResponse(BaseModel):
    """Current stock of a product."""

    product_id: int
    current_stock: int
    min_stock: int
    is_low_stock: bool


# --- Movements ---


class MovementResponse(BaseModel):
    """Stock movement response DTO."""

    id: int
    product_id: int
    movement_type: str
    quantity: int
    occurred_at: datetime
    inserted_at: datetime
    details: dict[str, str | None]
    product_name: str | None = None
    remaining_stock: int | None = None


class UpdateProductResponse(BaseModel):
    """Updated product plus the adjustment movement, if one was recorded."""

    product: ProductResponse
    adjustment: MovementResponse | None = None


class MovementWriteResponse(BaseModel):
    """A written movement and the product stock after the write."""

    movement: MovementResponse
    current_stock: int


class MovementPageResponse(BaseModel):
    """One page of movement history."""

    items: list[MovementResponse]
    pagination: PaginationResponse


class MovementExportResponse(BaseModel):
    """Unpaginated movement export."""

    movement_type: str
    items: list[MovementResponse]
    total: int


class StockSummaryRowResponse(BaseModel):
    """Per-product totals in a date range."""

    product_id: int
    product_name: str
    unit: str
    category: str | None = None
    total_in: int
    total_out: int
    net_change: int
    current_stock: int


class StockSummaryResponse(BaseModel):
    """Stock summary for a business date range."""

    date_from: str | None = None
    date_to: str | None = None
    items: list[StockSummaryRowResponse]


class ConsistencyViolationResponse(BaseModel):
    """Detected aggregate drift."""

    product_id: int
    expected: int
    recomputed: int
    drift: int
    detected_at: datetime


class ReconciliationResponse(BaseModel):
    """Result of a verification pass."""

    checked: int
    consistent: bool
    violations: list[ConsistencyViolationResponse]
    started_at: datetime
    finished_at: datetime | None = None


class RecomputeResponse(BaseModel):
    """Result of recomputing one product's stock."""

    product_id: int
    current_stock: int


# --- Sync ---


class SyncEventResponse(BaseModel):
    """Sync event response DTO."""

    id: int
    product_id: int
    item_name: str
    quantity: float
    unit: str
    gross_weight: float
    tare_weight: float
    roll_no: str
    recorded_by: str | None = None
    sync_status: str
    sync_error: str | None = None
    external_voucher_id: str | None = None
    needs_review: bool = False
    last_sync_attempt_at: datetime | None = None
    recorded_at: datetime
    created_at: datetime


class SyncEventListResponse(BaseModel):
    """Page of sync events; total counts every event matching the filter."""

    items: list[SyncEventResponse]
    total: int
    limit: int
    offset: int


class SyncOutcomeResponse(BaseModel):
    """Outcome of a sync attempt."""

    event_id: int
    status: str
    voucher_id: str | None = None
    error: str | None = None
    connector_called: bool


class SyncSummaryResponse(BaseModel):
    """Counts from a bulk sync pass."""

    attempted: int
    succeeded: int
    failed: int
    skipped: int
    outcomes: list[SyncOutcomeResponse]


class ConnectionTestResponse(BaseModel):
    """Accounting system reachability."""

    reachable: bool
    url: str | None = None


class MasterResultResponse(BaseModel):
    """Result of a master creation request."""

    success: bool
    message: str
