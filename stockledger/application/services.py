"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from stockledger.config import get_settings
from stockledger.core.services import AggregateService, SyncQueueManager
from stockledger.core.timestamps import BusinessCalendar

if TYPE_CHECKING:
    from stockledger.core.interfaces import (
        IAccountingConnector,
        ILedgerStore,
        ISyncEventStore,
    )


# Singleton service instances
_aggregate_service: AggregateService | None = None
_sync_queue_manager: SyncQueueManager | None = None


def get_business_calendar() -> BusinessCalendar:
    """Business calendar configured from settings."""
    return BusinessCalendar(get_settings().ledger.business_utc_offset_minutes)


async def get_aggregate_service(
    ledger_store: "ILedgerStore | None" = None,
) -> AggregateService:
    """
    Get or create AggregateService instance.

    The singleton holds the process-wide consistency violation counter.

    Args:
        ledger_store: Optional ledger store override

    Returns:
        Configured AggregateService
    """
    global _aggregate_service

    if _aggregate_service is not None and ledger_store is None:
        return _aggregate_service

    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import get_ledger_store

    settings = get_settings().ledger
    service = AggregateService(
        ledger_store=ledger_store or await get_ledger_store(),
        max_conflict_retries=settings.max_conflict_retries,
        retry_delay=settings.retry_delay,
        retry_multiplier=settings.retry_multiplier,
    )

    if ledger_store is None:
        _aggregate_service = service

    return service


async def get_sync_queue_manager(
    event_store: "ISyncEventStore | None" = None,
    connector: "IAccountingConnector | None" = None,
    ledger_store: "ILedgerStore | None" = None,
) -> SyncQueueManager:
    """
    Get or create SyncQueueManager instance.

    Args:
        event_store: Optional sync event store override
        connector: Optional accounting connector override
        ledger_store: Optional ledger store override

    Returns:
        Configured SyncQueueManager
    """
    global _sync_queue_manager

    overridden = any(d is not None for d in (event_store, connector, ledger_store))
    if _sync_queue_manager is not None and not overridden:
        return _sync_queue_manager

    # Lazy import infrastructure
    from stockledger.infrastructure.storage.sqlite import (
        get_ledger_store,
        get_sync_event_store,
    )
    from stockledger.infrastructure.tally import get_tally_connector

    settings = get_settings().sync
    manager = SyncQueueManager(
        event_store=event_store or await get_sync_event_store(),
        connector=connector or get_tally_connector(),
        ledger_store=ledger_store or await get_ledger_store(),
        timeout_seconds=settings.timeout_seconds,
        claim_ttl_seconds=settings.claim_ttl_seconds,
        state_write_retries=settings.state_write_retries,
        retry_delay=settings.retry_delay,
    )

    if not overridden:
        _sync_queue_manager = manager

    return manager


def reset_services() -> None:
    """Reset all singleton services (for testing)."""
    global _aggregate_service, _sync_queue_manager
    _aggregate_service = None
    _sync_queue_manager = None
