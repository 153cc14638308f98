"""
Tally XML request builders and response parsing.

Requests are assembled with ElementTree so every text value and attribute
is escaped on serialization.
"""

import re
import xml.etree.ElementTree as ET

from stockledger.infrastructure.tally.mapper import TallyVoucherData

_LINE_ERROR_RE = re.compile(r"<LINEERROR>(.*?)</LINEERROR>", re.DOTALL)
_LAST_VOUCHER_ID_RE = re.compile(r"<LASTVCHID>\s*(\d+)\s*</LASTVCHID>")
_ERRORS_RE = re.compile(r"<ERRORS>\s*(\d+)\s*</ERRORS>")

UNKNOWN_IMPORT_ERROR = "Tally returned an unknown error during import"


def _text(parent: ET.Element, tag: str, value: str | None = None) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if value is not None:
        element.text = value
    return element


def format_quantity(quantity: float, unit: str) -> str:
    """Tally quantity literal, e.g. '12.5 kg'."""
    number = f"{quantity:.3f}".rstrip("0").rstrip(".")
    return f"{number} {unit}"


def _import_envelope(report_name: str, company_name: str) -> tuple[ET.Element, ET.Element]:
    """Build the Import Data envelope; return (root, TALLYMESSAGE)."""
    envelope = ET.Element("ENVELOPE")
    header = _text(envelope, "HEADER")
    _text(header, "TALLYREQUEST", "Import Data")

    body = _text(envelope, "BODY")
    import_data = _text(body, "IMPORTDATA")
    request_desc = _text(import_data, "REQUESTDESC")
    _text(request_desc, "REPORTNAME", report_name)
    static = _text(request_desc, "STATICVARIABLES")
    _text(static, "SVCURRENTCOMPANY", company_name)

    request_data = _text(import_data, "REQUESTDATA")
    message = _text(request_data, "TALLYMESSAGE")
    message.set("xmlns:UDF", "TallyUDF")
    return envelope, message


def _serialize(envelope: ET.Element) -> str:
    return ET.tostring(envelope, encoding="unicode")


def _inventory_entry(
    voucher: ET.Element,
    tag: str,
    data: TallyVoucherData,
    godown: str,
    deemed_positive: bool,
) -> None:
    qty = format_quantity(data.quantity, data.unit)
    flag = "Yes" if deemed_positive else "No"
    entry = _text(voucher, tag)
    _text(entry, "STOCKITEMNAME", data.item_name)
    _text(entry, "ISDEEMEDPOSITIVE", flag)
    _text(entry, "ISLASTDEEMEDPOSITIVE", flag)
    _text(entry, "ACTUALQTY", qty)
    _text(entry, "BILLEDQTY", qty)
    batch = _text(entry, "BATCHALLOCATIONS.LIST")
    _text(batch, "GODOWNNAME", godown)
    _text(batch, "ACTUALQTY", qty)
    _text(batch, "BILLEDQTY", qty)


def stock_journal_xml(
    data: TallyVoucherData,
    company_name: str,
    to_godown: str,
    from_godown: str,
) -> str:
    """Stock Journal voucher moving the item from one godown to another."""
    envelope, message = _import_envelope("Vouchers", company_name)
    voucher = _text(message, "VOUCHER")
    voucher.set("VCHTYPE", "Stock Journal")
    voucher.set("ACTION", "Create")
    _text(voucher, "DATE", data.date)
    _text(voucher, "VOUCHERTYPENAME", "Stock Journal")
    _text(voucher, "VOUCHERNUMBER", data.roll_no)
    _text(voucher, "NARRATION", data.narration)
    _inventory_entry(voucher, "INVENTORYENTRIESIN.LIST", data, to_godown, True)
    _inventory_entry(voucher, "INVENTORYENTRIESOUT.LIST", data, from_godown, False)
    return _serialize(envelope)


def stock_item_xml(name: str, unit: str, company_name: str) -> str:
    """Stock item master."""
    envelope, message = _import_envelope("All Masters", company_name)
    item = _text(message, "STOCKITEM")
    item.set("NAME", name)
    item.set("ACTION", "Create")
    _text(item, "NAME", name)
    _text(item, "PARENT")
    _text(item, "UNITS", unit)
    _text(item, "GSTAPPLICABLE", "Applicable")
    _text(item, "ISGSTGOODS", "Yes")
    return _serialize(envelope)


def godown_xml(name: str, company_name: str) -> str:
    """Godown (storage location) master."""
    envelope, message = _import_envelope("All Masters", company_name)
    godown = _text(message, "GODOWN")
    godown.set("NAME", name)
    godown.set("ACTION", "Create")
    _text(godown, "NAME", name)
    _text(godown, "PARENT")
    return _serialize(envelope)


def unit_xml(symbol: str, formal_name: str, company_name: str) -> str:
    """Unit of measure master."""
    envelope, message = _import_envelope("All Masters", company_name)
    unit = _text(message, "UNIT")
    unit.set("NAME", symbol)
    unit.set("ACTION", "Create")
    _text(unit, "NAME", symbol)
    _text(unit, "ISSYMBOLONLY", "No")
    _text(unit, "FORMALNAME", formal_name)
    _text(unit, "DECIMALPLACES", "3")
    return _serialize(envelope)


def parse_import_error(response_text: str) -> str | None:
    """Error message from an import response, or None if it succeeded."""
    match = _LINE_ERROR_RE.search(response_text)
    if match:
        return match.group(1).strip() or UNKNOWN_IMPORT_ERROR
    errors = _ERRORS_RE.search(response_text)
    if errors and int(errors.group(1)) > 0:
        return UNKNOWN_IMPORT_ERROR
    return None


def parse_last_voucher_id(response_text: str) -> str | None:
    """Voucher master ID Tally assigned to the last created voucher."""
    match = _LAST_VOUCHER_ID_RE.search(response_text)
    if match and match.group(1) != "0":
        return match.group(1)
    return None
