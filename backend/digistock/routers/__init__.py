"""DigiStock - API Routers"""
from .clearances import router as clearances_router
from .permits import router as permits_router
from .transfers import router as transfers_router
from .livestock import router as livestock_router
from .analytics import router as analytics_router

__all__ = [
    "clearances_router",
    "permits_router",
    "transfers_router",
    "livestock_router",
    "analytics_router",
]
