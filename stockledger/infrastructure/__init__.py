"""Infrastructure layer implementations."""

from stockledger.infrastructure import storage, tally

__all__ = ["storage", "tally"]
