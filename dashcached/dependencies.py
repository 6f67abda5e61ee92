"""Shared dependency factories for FastAPI endpoints.

The cache runtime is built once in the application lifespan and kept on
app.state; these factories hand its instances to the routers.
"""

from fastapi import HTTPException
from fastapi import Request

from dashcache.cache import CacheManager
from dashcache.cache import ServiceGroupCatalog
from dashcache.runtime import CacheRuntime


def get_runtime(request: Request) -> CacheRuntime:
    """Get the cache runtime from app state.

    Raises:
        HTTPException: 503 if the runtime has not been initialized
    """
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Cache runtime not initialized")
    return runtime


def get_cache_manager(request: Request) -> CacheManager:
    """Get the process-wide cache manager.

    Returns:
        CacheManager instance
    """
    return get_runtime(request).manager


def get_service_catalog(request: Request) -> ServiceGroupCatalog:
    """Get the service group catalog.

    Returns:
        ServiceGroupCatalog instance
    """
    return get_cache_manager(request).catalog

