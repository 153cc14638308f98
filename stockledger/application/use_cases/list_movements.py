"""
List Movements Use Case - paginated stock-in / stock-out history.

Remaining stock on Out rows is computed from the product's full Out history
on the server, so it is correct on every page, in every sort order and
under any filter.
"""

import math
from dataclasses import dataclass

from stockledger.application.dto.converters import record_response
from stockledger.application.dto.responses import MovementPageResponse, PaginationResponse
from stockledger.config import get_logger, get_settings
from stockledger.core.entities.movement import (
    SORT_FIELDS,
    MovementFilters,
    MovementQuery,
    MovementRecord,
    MovementType,
)
from stockledger.core.exceptions import ProductNotFoundError, ValidationError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services import attach
from stockledger.core.timestamps import BusinessCalendar

logger = get_logger(__name__)


def parse_movement_type(value: str) -> MovementType:
    try:
        return MovementType(value.lower())
    except ValueError:
        raise ValidationError("movement_type", "Must be 'in' or 'out'", value) from None


def build_query(
    calendar: BusinessCalendar,
    movement_type: MovementType,
    filters: MovementFilters,
    product_id: int | None = None,
    sort_by: str = "date",
    sort_order: str = "desc",
) -> MovementQuery:
    """Translate API-level filters into a storage query."""
    start, end = calendar.utc_range(filters.date_from, filters.date_to)
    return MovementQuery(
        movement_type=movement_type,
        product_id=product_id,
        start=start,
        end=end,
        search=filters.search.strip() if filters.search and filters.search.strip() else None,
        details={k: v for k, v in filters.details.items() if v and v.strip()},
        sort_by=sort_by if sort_by in SORT_FIELDS[movement_type] else "date",
        sort_order="asc" if sort_order.lower() == "asc" else "desc",
    )


def with_remaining_stock(records: list[MovementRecord]) -> list[MovementRecord]:
    """Attach remaining stock using the stock snapshot read with each row."""
    stock_by_product = {
        r.movement.product_id: r.product_stock
        for r in records
        if r.product_stock is not None
    }
    return attach(stock_by_product, records)


@dataclass
class MovementPage:
    """One page of history."""

    records: list[MovementRecord]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


class ListMovementsUseCase:
    """Paginated history for one product and movement type."""

    def __init__(
        self,
        ledger_store: ILedgerStore | None = None,
        calendar: BusinessCalendar | None = None,
    ):
        self._ledger_store = ledger_store
        self._calendar = calendar

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    def _get_calendar(self) -> BusinessCalendar:
        if self._calendar is None:
            from stockledger.application.services import get_business_calendar

            self._calendar = get_business_calendar()
        return self._calendar

    async def execute(
        self,
        product_id: int,
        movement_type: str,
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "date",
        sort_order: str = "desc",
        filters: MovementFilters | None = None,
    ) -> MovementPage:
        """Execute list movements use case."""
        settings = get_settings().ledger
        limit = limit if limit is not None else settings.default_page_size
        if page < 1:
            raise ValidationError("page", "Must be 1 or greater", page)
        if not 1 <= limit <= settings.max_page_size:
            raise ValidationError(
                "limit", f"Must be between 1 and {settings.max_page_size}", limit
            )

        kind = parse_movement_type(movement_type)
        store = await self._get_ledger_store()
        if await store.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)

        query = build_query(
            self._get_calendar(),
            kind,
            filters or MovementFilters(),
            product_id=product_id,
            sort_by=sort_by,
            sort_order=sort_order,
        ).model_copy(update={"limit": limit, "offset": (page - 1) * limit})

        records, total = await store.page_movements(query)
        logger.info(
            "movement_history_listed",
            product_id=product_id,
            type=kind.value,
            page=page,
            total=total,
        )
        return MovementPage(
            records=with_remaining_stock(records), page=page, limit=limit, total=total
        )

    def to_response(self, result: MovementPage) -> MovementPageResponse:
        """Convert result to API response."""
        return MovementPageResponse(
            items=[record_response(r) for r in result.records],
            pagination=PaginationResponse(
                page=result.page,
                limit=result.limit,
                total=result.total,
                total_pages=result.total_pages,
                has_next_page=result.page < result.total_pages,
                has_prev_page=result.page > 1,
            ),
        )
