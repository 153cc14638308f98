"""Read-side report entities."""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.timestamps import utc_now


class ConsistencyViolation(BaseModel):
    """A detected divergence between cached and recomputed stock."""

    product_id: int
    expected: int
    recomputed: int
    detected_at: datetime = Field(default_factory=utc_now)

    @property
    def drift(self) -> int:
        return self.recomputed - self.expected


class ReconciliationReport(BaseModel):
    """Outcome of a full verification pass over all products."""

    checked: int = 0
    violations: list[ConsistencyViolation] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None

    @property
    def is_consistent(self) -> bool:
        return not self.violations


class StockSummaryRow(BaseModel):
    """Per-product totals over a business date range."""

    product_id: int
    product_name: str
    unit: str
    category: str | None = None
    total_in: int = 0
    total_out: int = 0
    current_stock: int = 0

    @property
    def net_change(self) -> int:
        return self.total_in - self.total_out
