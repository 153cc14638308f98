"""API routes."""

from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.ledger import router as ledger_router
from stockledger.api.routes.movements import router as movements_router
from stockledger.api.routes.products import router as products_router
from stockledger.api.routes.sync import router as sync_router

__all__ = [
    "health_router",
    "products_router",
    "movements_router",
    "ledger_router",
    "sync_router",
]
