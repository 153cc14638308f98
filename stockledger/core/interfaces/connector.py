"""Abstract interface for external accounting connectors."""

from abc import ABC, abstractmethod

from stockledger.core.entities.sync_event import SyncEvent, VoucherResult


class IAccountingConnector(ABC):
    """Interface for pushing vouchers and masters to an accounting system."""

    @abstractmethod
    async def create_voucher(self, event: SyncEvent) -> VoucherResult:
        """Create the accounting voucher for a sync event."""
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """Check whether the accounting system is reachable."""
        pass

    @abstractmethod
    async def create_stock_item(self, name: str, unit: str) -> VoucherResult:
        """Create a stock item master."""
        pass

    @abstractmethod
    async def create_godown(self, name: str) -> VoucherResult:
        """Create a godown (storage location) master."""
        pass

    @abstractmethod
    async def create_unit(self, symbol: str, formal_name: str | None = None) -> VoucherResult:
        """Create a unit of measure master."""
        pass
