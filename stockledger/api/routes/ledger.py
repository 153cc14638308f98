"""Ledger verification endpoints."""

from fastapi import APIRouter, Depends

from stockledger.api.dependencies import get_reconcile_ledger_use_case
from stockledger.application.dto.responses import (
    ErrorResponse,
    ReconciliationResponse,
    RecomputeResponse,
)
from stockledger.application.use_cases import ReconcileLedgerUseCase

router = APIRouter(prefix="/api/ledger", tags=["ledger"])


@router.post("/reconcile", response_model=ReconciliationResponse)
async def reconcile(
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> ReconciliationResponse:
    """Recompute every product from its movements and report drift."""
    report = await use_case.execute()
    return use_case.to_response(report)


@router.post(
    "/{product_id}/recompute",
    response_model=RecomputeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def recompute(
    product_id: int,
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> RecomputeResponse:
    """Rewrite one product's cached stock from its movements."""
    return await use_case.recompute(product_id)
