"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/interfaces/*
- stockledger/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from stockledger.core.services.aggregate_service import (
    ADJUSTMENT_LABEL,
    AggregateService,
    validate_detail_keys,
    validate_quantity,
)
from stockledger.core.services.remaining_stock import attach, project_remaining
from stockledger.core.services.sync_queue import SyncQueueManager

__all__ = [
    # Aggregate
    "AggregateService",
    "ADJUSTMENT_LABEL",
    "validate_quantity",
    "validate_detail_keys",
    # Remaining stock
    "project_remaining",
    "attach",
    # Sync
    "SyncQueueManager",
]
