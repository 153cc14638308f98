"""
Tally accounting connector.

Talks to a Tally agent over HTTP. Every call returns a VoucherResult;
transport errors and Tally import errors are reported as failures rather
than raised.
"""

import httpx

from stockledger.config import get_logger
from stockledger.config.settings import TallySettings
from stockledger.core.entities.sync_event import SyncEvent, VoucherResult
from stockledger.core.interfaces.connector import IAccountingConnector
from stockledger.core.timestamps import BusinessCalendar
from stockledger.infrastructure.tally.envelopes import (
    godown_xml,
    parse_import_error,
    parse_last_voucher_id,
    stock_item_xml,
    stock_journal_xml,
    unit_xml,
)
from stockledger.infrastructure.tally.mapper import map_event_to_voucher

logger = get_logger(__name__)

FALLBACK_GODOWN = "Main Location"


class TallyConnector(IAccountingConnector):
    """HTTP connector for a Tally agent."""

    def __init__(
        self,
        settings: TallySettings,
        calendar: BusinessCalendar,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.calendar = calendar
        self.url = settings.url
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    @property
    def to_godown(self) -> str:
        return self.settings.default_godown or FALLBACK_GODOWN

    @property
    def from_godown(self) -> str:
        return self.settings.source_godown or self.to_godown

    async def _post_xml(self, xml: str) -> VoucherResult:
        """Send an import request and interpret Tally's response."""
        try:
            async with self._client(self.settings.timeout) as client:
                response = await client.post(
                    self.url,
                    content=xml.encode("utf-8"),
                    headers={"Content-Type": "text/xml"},
                )
        except httpx.HTTPError as e:
            logger.warning("tally_unreachable", url=self.url, error=str(e))
            return VoucherResult(
                success=False,
                message=f"Tally Agent Connection Failed: {e or type(e).__name__}",
            )

        body = response.text
        if response.status_code >= 400:
            return VoucherResult(
                success=False,
                message=f"Tally Agent returned HTTP {response.status_code}: {body[:200]}",
            )

        error = parse_import_error(body)
        if error is not None:
            logger.warning("tally_import_rejected", error=error)
            return VoucherResult(success=False, message=error)

        return VoucherResult(
            success=True,
            voucher_id=parse_last_voucher_id(body),
            message="Sync Successful",
        )

    async def create_voucher(self, event: SyncEvent) -> VoucherResult:
        """Create a Stock Journal voucher for a production record."""
        data = map_event_to_voucher(
            event, self.calendar, first_of_month=self.settings.educational_mode
        )
        xml = stock_journal_xml(
            data,
            company_name=self.settings.company_name,
            to_godown=self.to_godown,
            from_godown=self.from_godown,
        )
        result = await self._post_xml(xml)
        if result.success and result.voucher_id is None:
            result.voucher_id = data.roll_no

        logger.info(
            "tally_voucher_sent",
            event_id=event.id,
            roll_no=data.roll_no,
            date=data.date,
            success=result.success,
        )
        return result

    async def test_connection(self) -> bool:
        """Any HTTP response means the agent is reachable."""
        try:
            async with self._client(self.settings.connection_test_timeout) as client:
                await client.get(self.url)
        except httpx.HTTPError as e:
            logger.info("tally_connection_failed", url=self.url, error=str(e))
            return False
        return True

    async def create_stock_item(self, name: str, unit: str) -> VoucherResult:
        """Create a stock item master."""
        result = await self._post_xml(stock_item_xml(name, unit, self.settings.company_name))
        logger.info("tally_stock_item_created", name=name, success=result.success)
        return result

    async def create_godown(self, name: str) -> VoucherResult:
        """Create a godown master."""
        result = await self._post_xml(godown_xml(name, self.settings.company_name))
        logger.info("tally_godown_created", name=name, success=result.success)
        return result

    async def create_unit(self, symbol: str, formal_name: str | None = None) -> VoucherResult:
        """Create a unit of measure master."""
        result = await self._post_xml(
            unit_xml(symbol, formal_name or symbol, self.settings.company_name)
        )
        logger.info("tally_unit_created", symbol=symbol, success=result.success)
        return result
