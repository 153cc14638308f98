"""Tally accounting integration."""

from stockledger.config import get_settings
from stockledger.core.timestamps import BusinessCalendar
from stockledger.infrastructure.tally.connector import TallyConnector

_connector: TallyConnector | None = None


def get_tally_connector() -> TallyConnector:
    """Get singleton Tally connector configured from settings."""
    global _connector
    if _connector is None:
        settings = get_settings()
        _connector = TallyConnector(
            settings.tally,
            BusinessCalendar(settings.ledger.business_utc_offset_minutes),
        )
    return _connector


def reset_tally_connector() -> None:
    """Reset the connector singleton (for testing)."""
    global _connector
    _connector = None


__all__ = ["TallyConnector", "get_tally_connector", "reset_tally_connector"]
