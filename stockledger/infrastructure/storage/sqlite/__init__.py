"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from stockledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore
from stockledger.infrastructure.storage.sqlite.sync_event_store import SQLiteSyncEventStore

# Type aliases for convenience
LedgerStore = SQLiteLedgerStore
SyncEventStore = SQLiteSyncEventStore

# Singleton instances
_ledger_store: SQLiteLedgerStore | None = None
_sync_event_store: SQLiteSyncEventStore | None = None


async def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLedgerStore()
    return _ledger_store


async def get_sync_event_store() -> SQLiteSyncEventStore:
    """Get singleton sync event store instance."""
    global _sync_event_store
    if _sync_event_store is None:
        _sync_event_store = SQLiteSyncEventStore()
    return _sync_event_store


def reset_stores() -> None:
    """Drop singleton stores (for testing and pool shutdown)."""
    global _ledger_store, _sync_event_store
    _ledger_store = None
    _sync_event_store = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteLedgerStore",
    "SQLiteSyncEventStore",
    # Type aliases
    "LedgerStore",
    "SyncEventStore",
    # Factory functions
    "get_ledger_store",
    "get_sync_event_store",
    "reset_stores",
]
