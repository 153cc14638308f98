"""Abstract interface for sync event storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from stockledger.core.entities.sync_event import SyncEvent, SyncStatus


class ISyncEventStore(ABC):
    """Interface for sync event persistence.

    Status transitions are compare-and-set updates; each returns whether
    the row was in the expected state and has been moved.
    """

    @abstractmethod
    async def create_event(self, event: SyncEvent) -> SyncEvent:
        """Create a new sync event."""
        pass

    @abstractmethod
    async def get_event(self, event_id: int) -> SyncEvent | None:
        """Get sync event by ID."""
        pass

    @abstractmethod
    async def list_events(
        self,
        status: SyncStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SyncEvent]:
        """List events, newest first, optionally filtered by status."""
        pass

    @abstractmethod
    async def count_events(self, status: SyncStatus | None = None) -> int:
        """Count events, optionally filtered by status."""
        pass

    @abstractmethod
    async def list_sync_candidates(self) -> list[SyncEvent]:
        """Pending and failed events in insertion order, minus those held for review."""
        pass

    @abstractmethod
    async def claim(self, event_id: int, now: datetime) -> bool:
        """Move pending -> in_flight."""
        pass

    @abstractmethod
    async def mark_synced(self, event_id: int, voucher_id: str, now: datetime) -> bool:
        """Move in_flight -> synced, storing the external voucher ID."""
        pass

    @abstractmethod
    async def mark_failed(self, event_id: int, error: str, now: datetime) -> bool:
        """Move in_flight -> failed, storing the error."""
        pass

    @abstractmethod
    async def reset_to_pending(self, event_id: int) -> bool:
        """Move failed -> pending."""
        pass

    @abstractmethod
    async def release_stale_claims(
        self, claimed_before: datetime, error: str
    ) -> list[int]:
        """Move in_flight events claimed before the cutoff to failed and flag them for review."""
        pass
