"""Stock movement domain entities."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from stockledger.core.timestamps import utc_now


class MovementType(str, Enum):
    """Types of stock movements."""

    IN = "in"
    OUT = "out"


class StockInDetails(BaseModel):
    """Metadata recorded with a stock-in movement."""

    supplier: str | None = None
    invoice_no: str | None = None
    location: str | None = None


class StockOutDetails(BaseModel):
    """Metadata recorded with a stock-out movement."""

    department: str | None = None
    issued_by: str | None = None
    issued_to: str | None = None
    purpose: str | None = None


IN_DETAIL_FIELDS = frozenset(StockInDetails.model_fields)
OUT_DETAIL_FIELDS = frozenset(StockOutDetails.model_fields)

# Sortable columns per movement type; "date" is the canonical timestamp
SORT_FIELDS: dict[MovementType, frozenset[str]] = {
    MovementType.IN: frozenset({"date", "quantity"}) | IN_DETAIL_FIELDS,
    MovementType.OUT: frozenset({"date", "quantity"}) | OUT_DETAIL_FIELDS,
}


def details_for(movement_type: MovementType, data: dict[str, Any] | None = None):
    """Build the details variant matching ``movement_type``."""
    if movement_type == MovementType.IN:
        return StockInDetails(**(data or {}))
    return StockOutDetails(**(data or {}))


class Movement(BaseModel):
    """Records a single stock-in or stock-out transaction."""

    id: int | None = None
    product_id: int
    movement_type: MovementType
    quantity: int  # always positive
    occurred_at: datetime  # canonical UTC instant of the business event
    inserted_at: datetime = Field(default_factory=utc_now)
    details: StockInDetails | StockOutDetails
    deleted_at: datetime | None = None

    @model_validator(mode="after")
    def _details_match_type(self) -> "Movement":
        expected = StockInDetails if self.movement_type == MovementType.IN else StockOutDetails
        if not isinstance(self.details, expected):
            raise ValueError(
                f"{self.movement_type.value} movement requires {expected.__name__}"
            )
        return self

    @property
    def signed_quantity(self) -> int:
        """Quantity as a delta on current stock."""
        return self.quantity if self.movement_type == MovementType.IN else -self.quantity


class MovementPatch(BaseModel):
    """Partial update for an existing movement."""

    quantity: int | None = None
    occurred_at: datetime | None = None
    details: dict[str, str | None] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return self.quantity is None and self.occurred_at is None and not self.details


class MovementRecord(BaseModel):
    """Read model for history listings and exports."""

    movement: Movement
    product_name: str | None = None
    product_stock: int | None = None  # current stock read in the same statement
    later_out_total: int | None = None  # Out quantity strictly more recent than this row
    remaining_stock: int | None = None


class MovementFilters(BaseModel):
    """History filters. Dates are business calendar dates, both inclusive."""

    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None
    details: dict[str, str] = Field(default_factory=dict)


class MovementQuery(BaseModel):
    """Storage-level history query with the date range already in UTC."""

    movement_type: MovementType
    product_id: int | None = None
    start: datetime | None = None  # inclusive
    end: datetime | None = None  # exclusive
    search: str | None = None
    details: dict[str, str] = Field(default_factory=dict)
    sort_by: str = "date"
    sort_order: Literal["asc", "desc"] = "desc"
    limit: int | None = None
    offset: int = 0


class MovementChange(BaseModel):
    """Result of an edit or soft delete applied inside one ledger transaction."""

    movement: Movement
    cached_before: int  # counter value read inside the transaction
    expected: int  # cached_before adjusted by the change's delta
    recomputed: int  # full ledger sum after the change, now written to the counter

    @property
    def is_consistent(self) -> bool:
        return self.expected == self.recomputed
