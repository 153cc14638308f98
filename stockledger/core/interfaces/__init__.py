"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.connector import IAccountingConnector
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.interfaces.sync_event_store import ISyncEventStore

__all__ = [
    # Storage interfaces
    "ILedgerStore",
    "ISyncEventStore",
    # External systems
    "IAccountingConnector",
]
