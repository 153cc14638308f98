"""Stock Summary Use Case - per-product In/Out totals over business dates."""

from datetime import date

from stockledger.application.dto.responses import StockSummaryResponse, StockSummaryRowResponse
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.timestamps import BusinessCalendar


class StockSummaryUseCase:
    """Summarize movements per product for an inclusive local date range."""

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
        self, date_from: date | None = None, date_to: date | None = None
    ) -> StockSummaryResponse:
        # utc_range rejects date_from > date_to
        start, end = self._get_calendar().utc_range(date_from, date_to)
        store = await self._get_ledger_store()
        rows = await store.stock_summary(start, end)
        return StockSummaryResponse(
            date_from=date_from.isoformat() if date_from else None,
            date_to=date_to.isoformat() if date_to else None,
            items=[
                StockSummaryRowResponse(
                    product_id=row.product_id,
                    product_name=row.product_name,
                    unit=row.unit,
                    category=row.category,
                    total_in=row.total_in,
                    total_out=row.total_out,
                    net_change=row.net_change,
                    current_stock=row.current_stock,
                )
                for row in rows
            ],
        )
