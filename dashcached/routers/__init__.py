"""API routers for dashcached daemon.

This module contains FastAPI routers for all API endpoints.
"""

from .cache import router as cache_router

__all__ = [
    "cache_router",
]
