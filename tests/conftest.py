"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from stockledger.core.entities import Product
from stockledger.core.services import AggregateService
from stockledger.core.timestamps import BusinessCalendar
from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteLedgerStore,
    SQLiteSyncEventStore,
)
from stockledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def calendar() -> BusinessCalendar:
    """Business calendar at +05:30."""
    return BusinessCalendar(330)


@pytest.fixture
def at() -> Callable[..., datetime]:
    """Build aware UTC instants tersely: at(2025, 1, 1, 10)."""

    def _at(*args: int) -> datetime:
        return datetime(*args, tzinfo=UTC)

    return _at


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_ledger.db"


@pytest.fixture
async def pool(temp_db_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over a freshly migrated temporary database."""
    await initialize_database(temp_db_path, create_backup_before=False)
    pool = ConnectionPool(temp_db_path, pool_size=5, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def ledger_store(pool: ConnectionPool) -> SQLiteLedgerStore:
    return SQLiteLedgerStore(pool)


@pytest.fixture
def sync_store(pool: ConnectionPool) -> SQLiteSyncEventStore:
    return SQLiteSyncEventStore(pool)


@pytest.fixture
def aggregate(ledger_store: SQLiteLedgerStore) -> AggregateService:
    """Aggregate service over the real store with fast conflict retries."""
    return AggregateService(ledger_store, retry_delay=0.001)


@pytest.fixture
def make_product(
    ledger_store: SQLiteLedgerStore,
) -> Callable[..., Awaitable[Product]]:
    """Create a product in the temporary database."""

    async def _make(name: str = "Cotton Yarn", unit: str = "kg", **kwargs) -> Product:
        return await ledger_store.create_product(Product(name=name, unit=unit, **kwargs))

    return _make
