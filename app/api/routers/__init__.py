"""
app/api/routers package marker.
"""

from app.api.routers.plugins import router as plugins_router
from app.api.routers.prices import router as prices_router

__all__ = [
    "plugins_router",
    "prices_router",
]
