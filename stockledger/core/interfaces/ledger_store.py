"""Abstract interface for ledger storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from stockledger.core.entities.movement import (
    Movement,
    MovementChange,
    MovementPatch,
    MovementQuery,
    MovementRecord,
)
from stockledger.core.entities.product import Product, ProductStockTotals
from stockledger.core.entities.reports import StockSummaryRow


class ILedgerStore(ABC):
    """Interface for product, movement and stock aggregate persistence.

    The aggregate write methods are called only by the aggregate service.
    Each runs as a single atomic unit of work.
    """

    # Products

    @abstractmethod
    async def create_product(self, product: Product) -> Product:
        """Create a new product with zero stock."""
        pass

    @abstractmethod
    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def list_products(
        self, search: str | None = None, limit: int = 100, offset: int = 0
    ) -> tuple[list[Product], int]:
        """List products ordered by name, with the total match count."""
        pass

    @abstractmethod
    async def list_low_stock(self) -> list[Product]:
        """List products with a threshold set and stock strictly below it."""
        pass

    @abstractmethod
    async def list_product_ids(self) -> list[int]:
        """IDs of every product, ascending."""
        pass

    @abstractmethod
    async def update_product(self, product: Product) -> Product:
        """Update product metadata. Never writes current_stock."""
        pass

    # Aggregate writes

    @abstractmethod
    async def append_movement(self, movement: Movement) -> Movement:
        """Insert a movement and apply its delta to the cached stock atomically.

        Raises:
            ProductNotFoundError: Product does not exist.
            InsufficientStockError: Out quantity exceeds current stock.
        """
        pass

    @abstractmethod
    async def update_movement(
        self, movement_id: int, patch: MovementPatch
    ) -> MovementChange:
        """Apply a patch to a live movement and recompute its product's stock.

        Raises:
            MovementNotFoundError: Movement missing or already deleted.
            InsufficientStockError: Resulting stock would be negative.
        """
        pass

    @abstractmethod
    async def delete_movement(self, movement_id: int) -> MovementChange:
        """Soft-delete a movement and recompute its product's stock.

        Raises:
            MovementNotFoundError: Movement missing or already deleted.
            InsufficientStockError: Resulting stock would be negative.
        """
        pass

    @abstractmethod
    async def recompute_aggregate(self, product_id: int) -> tuple[int, int]:
        """Rewrite cached stock from the full ledger sum.

        Returns:
            (cached_before, recomputed)
        """
        pass

    # Reads

    @abstractmethod
    async def get_current_stock(self, product_id: int) -> int | None:
        """Cached stock for a product, or None if it does not exist."""
        pass

    @abstractmethod
    async def get_movement(self, movement_id: int) -> Movement | None:
        """Get a live (non-deleted) movement by ID."""
        pass

    @abstractmethod
    async def page_movements(
        self, query: MovementQuery
    ) -> tuple[list[MovementRecord], int]:
        """One page of matching movements plus the total match count.

        Out rows carry ``later_out_total`` computed over the product's full
        Out history, independent of the query's filters and page.
        """
        pass

    @abstractmethod
    async def export_movements(self, query: MovementQuery) -> list[MovementRecord]:
        """All matching movements, unpaginated."""
        pass

    @abstractmethod
    async def movement_totals(
        self,
        product_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> ProductStockTotals:
        """Sum of live In and Out quantities within an optional UTC range."""
        pass

    @abstractmethod
    async def stock_summary(
        self, start: datetime | None, end: datetime | None
    ) -> list[StockSummaryRow]:
        """Per-product In/Out totals in a UTC range plus current stock."""
        pass
