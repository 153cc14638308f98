"""Maps sync events to Tally Stock Journal voucher data."""

from dataclasses import dataclass

from stockledger.core.entities.sync_event import SyncEvent
from stockledger.core.timestamps import BusinessCalendar


@dataclass(frozen=True)
class TallyVoucherData:
    """Flattened voucher fields ready for XML rendering."""

    roll_no: str
    item_name: str
    quantity: float
    unit: str
    date: str  # YYYYMMDD
    gross_weight: float
    tare_weight: float
    narration: str


def build_narration(event: SyncEvent) -> str:
    """Operator-facing narration: roll, weights and who recorded it."""
    p = event.payload
    return " | ".join(
        [
            f"Roll No: {p.roll_no or 'NONE'}",
            f"Gross: {p.gross_weight:.2f}{p.unit}",
            f"Tare: {p.tare_weight:.2f}{p.unit}",
            f"Net: {p.quantity:.2f}{p.unit}",
            f"Operator ID: {p.recorded_by or 'System'}",
        ]
    )


def map_event_to_voucher(
    event: SyncEvent,
    calendar: BusinessCalendar,
    first_of_month: bool = False,
) -> TallyVoucherData:
    """
    Build voucher data for a sync event.

    The voucher date is the business calendar day of ``recorded_at``;
    educational Tally installs only accept the first day of a month.
    """
    p = event.payload
    return TallyVoucherData(
        roll_no=p.roll_no,
        item_name=p.item_name,
        quantity=p.quantity,
        unit=p.unit,
        date=calendar.voucher_date(event.recorded_at, first_of_month=first_of_month),
        gross_weight=p.gross_weight,
        tare_weight=p.tare_weight,
        narration=build_narration(event),
    )
