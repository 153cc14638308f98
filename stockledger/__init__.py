"""
StockLedger - inventory ledger with a consistent cached stock aggregate
and manual accounting sync to Tally.
"""

__version__ = "1.0.0"
