"""Product domain entities."""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.timestamps import utc_now


class Product(BaseModel):
    """A stocked product and its cached current-stock aggregate."""

    id: int | None = None
    name: str
    unit: str
    category: str | None = None
    min_stock: int = Field(default=0, ge=0)  # alert threshold
    current_stock: int = 0  # written only by the aggregate service
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_low_stock(self) -> bool:
        """True when a real threshold is set and stock is strictly below it."""
        return self.min_stock > 0 and self.current_stock < self.min_stock


class ProductStockTotals(BaseModel):
    """All-time or ranged movement totals for a product."""

    product_id: int
    total_in: int = 0
    total_out: int = 0
