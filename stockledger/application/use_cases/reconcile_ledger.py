"""Reconcile Ledger Use Cases - verify and repair cached stock."""

from stockledger.application.dto.responses import (
    ConsistencyViolationResponse,
    LedgerHealthResponse,
    ReconciliationResponse,
    RecomputeResponse,
)
from stockledger.core.entities.reports import ConsistencyViolation, ReconciliationReport
from stockledger.core.exceptions import ProductNotFoundError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services import AggregateService


def _violation_response(v: ConsistencyViolation) -> ConsistencyViolationResponse:
    return ConsistencyViolationResponse(
        product_id=v.product_id,
        expected=v.expected,
        recomputed=v.recomputed,
        drift=v.drift,
        detected_at=v.detected_at,
    )


class ReconcileLedgerUseCase:
    """Recompute every product's stock from its ledger and report drift."""

    def __init__(
        self,
        aggregate_service: AggregateService | None = None,
        ledger_store: ILedgerStore | None = None,
    ):
        self._aggregate = aggregate_service
        self._ledger_store = ledger_store

    async def _get_aggregate_service(self) -> AggregateService:
        if self._aggregate is None:
            from stockledger.application.services import get_aggregate_service

            self._aggregate = await get_aggregate_service()
        return self._aggregate

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def execute(self) -> ReconciliationReport:
        aggregate = await self._get_aggregate_service()
        return await aggregate.verify_all()

    async def recompute(self, product_id: int) -> RecomputeResponse:
        """Recompute a single product."""
        store = await self._get_ledger_store()
        if await store.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)
        aggregate = await self._get_aggregate_service()
        stock = await aggregate.recompute_aggregate(product_id)
        return RecomputeResponse(product_id=product_id, current_stock=stock)

    async def health(self) -> LedgerHealthResponse:
        """Violation counter since process start."""
        aggregate = await self._get_aggregate_service()
        last = aggregate.last_violation
        return LedgerHealthResponse(
            status="ok" if aggregate.violation_count == 0 else "degraded",
            violation_count=aggregate.violation_count,
            last_violation=(
                _violation_response(last).model_dump(mode="json") if last else None
            ),
        )

    def to_response(self, report: ReconciliationReport) -> ReconciliationResponse:
        return ReconciliationResponse(
            checked=report.checked,
            consistent=report.is_consistent,
            violations=[_violation_response(v) for v in report.violations],
            started_at=report.started_at,
            finished_at=report.finished_at,
        )
