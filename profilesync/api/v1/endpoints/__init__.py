"""
API V1 Endpoints

FastAPI routers for all API endpoints.
"""

from .health import router as health_router
from .profiles import router as profiles_router
from .proxies import router as proxies_router

__all__ = [
    "health_router",
    "profiles_router",
    "proxies_router",
]
