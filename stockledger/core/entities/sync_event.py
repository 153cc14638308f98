"""Sync event entities for external accounting synchronization."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from stockledger.core.timestamps import utc_now


class SyncStatus(str, Enum):
    """Lifecycle of a sync event.

    pending -> in_flight -> synced | failed; failed -> pending on retry.
    """

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SYNCED = "synced"
    FAILED = "failed"


class VoucherPayload(BaseModel):
    """Business data sent to the accounting system for one production record."""

    item_name: str
    quantity: float = Field(gt=0)  # net weight
    unit: str = "kg"
    gross_weight: float = Field(gt=0)
    tare_weight: float = Field(default=0.0, ge=0)
    roll_no: str
    recorded_by: str | None = None

    @model_validator(mode="after")
    def _net_matches_weights(self) -> "VoucherPayload":
        if abs(self.gross_weight - self.tare_weight - self.quantity) > 1e-6:
            raise ValueError("quantity must equal gross_weight - tare_weight")
        return self


class SyncEvent(BaseModel):
    """A production weight record awaiting (or done with) external sync."""

    id: int | None = None
    product_id: int
    payload: VoucherPayload
    sync_status: SyncStatus = SyncStatus.PENDING
    sync_error: str | None = None
    external_voucher_id: str | None = None
    last_sync_attempt_at: datetime | None = None
    claimed_at: datetime | None = None
    needs_review: bool = False  # claim expired; Tally may already hold a voucher
    recorded_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)


class VoucherResult(BaseModel):
    """Connector response for a voucher or master creation request."""

    success: bool
    voucher_id: str | None = None
    message: str = ""


class SyncOutcome(BaseModel):
    """Result of one sync attempt as seen by the caller."""

    event_id: int
    status: SyncStatus
    voucher_id: str | None = None
    error: str | None = None
    connector_called: bool = False


class SyncSummary(BaseModel):
    """Counts from a bulk sync pass."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: list[SyncOutcome] = Field(default_factory=list)
