# API routers
from .requests import router as requests_router
from .designs import router as designs_router
from .catalog import router as catalog_router
from .notifications import router as notifications_router
from .admin import router as admin_router

__all__ = [
    "requests_router",
    "designs_router",
    "catalog_router",
    "notifications_router",
    "admin_router",
]
