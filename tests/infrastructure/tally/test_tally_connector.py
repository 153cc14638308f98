"""Tests for TallyConnector against a mocked HTTP transport."""

from datetime import UTC, datetime

import httpx
import pytest

from stockledger.config.settings import TallySettings
from stockledger.core.entities import SyncEvent, VoucherPayload
from stockledger.core.timestamps import BusinessCalendar
from stockledger.infrastructure.tally.connector import TallyConnector

EVENT = SyncEvent(
    id=1,
    product_id=1,
    payload=VoucherPayload(
        item_name="Cotton Yarn", quantity=9.0, gross_weight=10.0, tare_weight=1.0, roll_no="R-1"
    ),
    recorded_at=datetime(2025, 1, 1, tzinfo=UTC),
)


def _connector(handler, **settings) -> TallyConnector:
    return TallyConnector(
        TallySettings(**settings),
        BusinessCalendar(330),
        transport=httpx.MockTransport(handler),
    )


class TestCreateVoucher:
    async def test_success_with_voucher_id(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="<RESPONSE><LASTVCHID>77</LASTVCHID></RESPONSE>")

        result = await _connector(handler, company_name="Acme").create_voucher(EVENT)

        assert result.success is True
        assert result.voucher_id == "77"
        assert seen[0].method == "POST"
        assert seen[0].headers["content-type"] == "text/xml"
        assert b"<VOUCHERNUMBER>R-1</VOUCHERNUMBER>" in seen[0].content
        assert b"<SVCURRENTCOMPANY>Acme</SVCURRENTCOMPANY>" in seen[0].content

    async def test_falls_back_to_roll_no(self):
        connector = _connector(lambda request: httpx.Response(200, text="<RESPONSE/>"))
        result = await connector.create_voucher(EVENT)
        assert result.success is True
        assert result.voucher_id == "R-1"

    async def test_line_error_is_failure(self):
        connector = _connector(
            lambda request: httpx.Response(
                200, text="<RESPONSE><LINEERROR>Voucher date is missing</LINEERROR></RESPONSE>"
            )
        )
        result = await connector.create_voucher(EVENT)
        assert result.success is False
        assert result.message == "Voucher date is missing"

    async def test_http_error_status(self):
        connector = _connector(lambda request: httpx.Response(500, text="boom"))
        result = await connector.create_voucher(EVENT)
        assert result.success is False
        assert "HTTP 500" in result.message

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await _connector(handler).create_voucher(EVENT)
        assert result.success is False
        assert result.message.startswith("Tally Agent Connection Failed")

    @pytest.mark.parametrize(
        ("settings", "expected"),
        [
            ({}, (b"Main Location", b"Main Location")),
            ({"source_godown": "Floor"}, (b"Main Location", b"Floor")),
        ],
    )
    async def test_godowns(self, settings: dict, expected: tuple[bytes, bytes]):
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.content)
            return httpx.Response(200, text="<RESPONSE/>")

        await _connector(handler, **settings).create_voucher(EVENT)
        body = seen[0]
        to_godown, from_godown = expected
        in_part, out_part = body.split(b"INVENTORYENTRIESOUT.LIST", 1)
        assert b"<GODOWNNAME>" + to_godown in in_part
        assert b"<GODOWNNAME>" + from_godown in out_part


class TestConnection:
    async def test_any_response_is_reachable(self):
        connector = _connector(lambda request: httpx.Response(404))
        assert await connector.test_connection() is True

    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        assert await _connector(handler).test_connection() is False


class TestMasters:
    async def test_create_unit_defaults_formal_name(self):
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.content)
            return httpx.Response(200, text="<RESPONSE><CREATED>1</CREATED></RESPONSE>")

        result = await _connector(handler).create_unit("kg")
        assert result.success is True
        assert b"<FORMALNAME>kg</FORMALNAME>" in seen[0]

    async def test_master_rejected(self):
        connector = _connector(
            lambda request: httpx.Response(200, text="<RESPONSE><ERRORS>1</ERRORS></RESPONSE>")
        )
        result = await connector.create_godown("Store")
        assert result.success is False
