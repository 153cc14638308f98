"""Export Movements Use Case - unpaginated history with product names."""

from dataclasses import dataclass

from stockledger.application.dto.converters import record_response
from stockledger.application.dto.responses import MovementExportResponse
from stockledger.application.use_cases.list_movements import (
    build_query,
    parse_movement_type,
    with_remaining_stock,
)
from stockledger.config import get_logger
from stockledger.core.entities.movement import MovementFilters, MovementRecord, MovementType
from stockledger.core.exceptions import ProductNotFoundError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.timestamps import BusinessCalendar

logger = get_logger(__name__)


@dataclass
class MovementExport:
    """All matching movements."""

    movement_type: MovementType
    records: list[MovementRecord]


class ExportMovementsUseCase:
    """Export movements of one type, optionally for a single product."""

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
        movement_type: str,
        product_id: int | None = None,
        sort_by: str = "date",
        sort_order: str = "desc",
        filters: MovementFilters | None = None,
    ) -> MovementExport:
        """Execute export use case."""
        kind = parse_movement_type(movement_type)
        store = await self._get_ledger_store()
        if product_id is not None and await store.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)

        query = build_query(
            self._get_calendar(),
            kind,
            filters or MovementFilters(),
            product_id=product_id,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        records = await store.export_movements(query)
        logger.info(
            "movements_exported",
            type=kind.value,
            product_id=product_id,
            count=len(records),
        )
        return MovementExport(movement_type=kind, records=with_remaining_stock(records))

    def to_response(self, result: MovementExport) -> MovementExportResponse:
        """Convert result to API response."""
        return MovementExportResponse(
            movement_type=result.movement_type.value,
            items=[record_response(r) for r in result.records],
            total=len(result.records),
        )
