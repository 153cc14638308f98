"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from stockledger import __version__
from stockledger.api.dependencies import get_db_pool, get_reconcile_ledger_use_case
from stockledger.application.dto.responses import (
    HealthResponse,
    LedgerHealthResponse,
    ProviderHealthResponse,
)
from stockledger.application.use_cases import ReconcileLedgerUseCase
from stockledger.infrastructure.storage.sqlite import ConnectionPool

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


def _uptime() -> float:
    return time.time() - _start_time


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(status="healthy", version=__version__, uptime_seconds=_uptime())


@router.get("/db", response_model=HealthResponse)
async def db_health(pool: ConnectionPool = Depends(get_db_pool)) -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    try:
        start = time.time()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
        db_status = ProviderHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=(time.time() - start) * 1000,
        )
    except Exception as e:
        db_status = ProviderHealthResponse(name="sqlite", available=False, error=str(e))

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=__version__,
        uptime_seconds=_uptime(),
        database=db_status,
    )


@router.get("/ledger", response_model=LedgerHealthResponse)
async def ledger_health(
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> LedgerHealthResponse:
    """Consistency violations detected since startup."""
    return await use_case.health()
