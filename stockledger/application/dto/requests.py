"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Quantities are declared as plain ``int`` so non-positive values reach the
domain layer and are rejected there with a domain error.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

# --- Products ---


class CreateProductRequest(BaseModel):
    """Request to create a product."""

    name: str = Field(..., min_length=1, description="Product name")
    unit: str = Field(..., min_length=1, description="Unit of measure", examples=["kg", "pcs"])
    category: str | None = Field(default=None, description="Product category")
    min_stock: int = Field(default=0, ge=0, description="Low-stock alert threshold")


class UpdateProductRequest(BaseModel):
    """Request to update product metadata.

    ``current_stock`` is not written directly; a differing value records a
    "Stock Adjustment" movement for the difference.
    """

    name: str | None = Field(default=None, min_length=1)
    unit: str | None = Field(default=None, min_length=1)
    category: str | None = None
    min_stock: int | None = Field(default=None, ge=0)
    current_stock: int | None = Field(
        default=None, description="Target stock; recorded as an adjustment movement"
    )
    occurred_at: datetime | None = Field(
        default=None, description="Instant of the adjustment (ISO-8601 with offset)"
    )


# --- Movements ---


class RecordMovementRequest(BaseModel):
    """Request to record a stock-in or stock-out movement."""

    product_id: int = Field(..., description="Product ID")
    movement_type: Literal["in", "out"] = Field(..., description="Movement direction")
    quantity: int = Field(..., description="Positive integer quantity")
    occurred_at: datetime | None = Field(
        default=None,
        description="Business instant with UTC offset (defaults to now)",
        examples=["2025-01-01T10:30:00+05:30"],
    )

    # Stock-in details
    supplier: str | None = None
    invoice_no: str | None = None
    location: str | None = None

    # Stock-out details
    department: str | None = None
    issued_by: str | None = None
    issued_to: str | None = None
    purpose: str | None = None

    def detail_fields(self) -> dict[str, str]:
        """Detail fields the client actually sent."""
        keys = ("supplier", "invoice_no", "location", "department", "issued_by", "issued_to", "purpose")
        return {k: getattr(self, k) for k in keys if getattr(self, k) is not None}


class UpdateMovementRequest(BaseModel):
    """Partial update of an existing movement."""

    quantity: int | None = None
    occurred_at: datetime | None = None

    supplier: str | None = None
    invoice_no: str | None = None
    location: str | None = None
    department: str | None = None
    issued_by: str | None = None
    issued_to: str | None = None
    purpose: str | None = None

    def detail_fields(self) -> dict[str, str | None]:
        """Detail fields explicitly present in the request body."""
        keys = {"supplier", "invoice_no", "location", "department", "issued_by", "issued_to", "purpose"}
        return {k: getattr(self, k) for k in sorted(self.model_fields_set & keys)}


# --- Sync ---


class RecordSyncEventRequest(BaseModel):
    """Request to record a production weight reading for accounting sync."""

    product_id: int = Field(..., description="Product ID")
    gross_weight: float = Field(..., description="Gross weight")
    tare_weight: float = Field(default=0.0, description="Tare weight")
    unit: str = Field(default="kg", description="Weight unit")
    roll_no: str | None = Field(default=None, description="Roll number (voucher number)")
    recorded_by: str | None = Field(default=None, description="Operator identifier")
    recorded_at: datetime | None = Field(default=None, description="Reading instant")


class CreateStockItemRequest(BaseModel):
    """Request to create a stock item master in the accounting system."""

    name: str = Field(..., min_length=1)
    unit: str = Field(..., min_length=1)


class CreateGodownRequest(BaseModel):
    """Request to create a godown master in the accounting system."""

    name: str = Field(..., min_length=1)


class CreateUnitRequest(BaseModel):
    """Request to create a unit master in the accounting system."""

    symbol: str = Field(..., min_length=1)
    formal_name: str | None = None
