"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteLedgerStore,
    SQLiteSyncEventStore,
    close_pool,
    get_pool,
)

__all__ = [
    "ConnectionPool",
    "SQLiteLedgerStore",
    "SQLiteSyncEventStore",
    "get_pool",
    "close_pool",
]
