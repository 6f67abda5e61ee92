"""Thin HTTP wrapper around dashcache.cache.

Architecture: This router contains ONLY HTTP handling.
All business logic is in dashcache.cache.CacheManager. Actions report
failure in the ActionResult body; only an unknown service group maps to 404.
"""

import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from pydantic import Field

from dashcache.cache import CacheManager
from dashcache.cache import ServiceGroupCatalog
from dashcache.config import CacheConfig
from dashcache.errors import UnknownServiceGroupError
from dashcache.models import ActionResult
from dashcache.models import CacheService
from dashcache.models import CacheStatusResponse
from dashcache.models import CamelCaseModel
from dashcache.models import OperationCacheContents
from dashcache.models import ScheduledRefreshInfo

from ..dependencies import get_cache_manager
from ..dependencies import get_service_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cache", tags=["cache"])


# --- Request/Response Models ---


class ServiceGroupInfo(CamelCaseModel):
    """Service group as listed by the API."""

    name: str = Field(..., description="Group name")
    display_name: str = Field(..., description="Human-readable group name")
    operations: list[str] = Field(..., description="Operations in the group")
    service: CacheService = Field(..., description="Service the operations live on")


class OperationTTLUpdate(CamelCaseModel):
    """Request model for setting a per-operation TTL."""

    hours: float = Field(..., ge=0, description="TTL in hours (0 = never cache)")


def _raise_for_unknown_group(result: ActionResult) -> ActionResult:
    if result.error_code == UnknownServiceGroupError.code:
        raise HTTPException(status_code=404, detail=result.error)
    return result


# =============================================================================
# Status Endpoints
# =============================================================================


@router.get("/status", response_model=CacheStatusResponse)
async def get_cache_status(
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> CacheStatusResponse:
    """Get status rows for every catalogued operation."""
    try:
        return manager.update_status()
    except Exception as exc:
        logger.error(f"Failed to get cache status: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get(
    "/scheduled-refresh",
    response_model=ScheduledRefreshInfo,
    response_model_exclude_none=True,
)
async def get_scheduled_refresh(
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ScheduledRefreshInfo:
    """Get the next scheduled refresh."""
    return manager.get_scheduled_refresh_info()


@router.get("/groups", response_model=list[ServiceGroupInfo])
async def list_service_groups(
    catalog: Annotated[ServiceGroupCatalog, Depends(get_service_catalog)],
) -> list[ServiceGroupInfo]:
    """List the service groups."""
    return [
        ServiceGroupInfo(
            name=group.name,
            display_name=group.display_name,
            operations=list(group.operations),
            service=group.service,
        )
        for group in catalog.list()
    ]


@router.get("/operations/{operation}/contents", response_model=OperationCacheContents)
async def get_operation_contents(
    operation: str,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> OperationCacheContents:
    """Get the stored entry of one operation."""
    contents = manager.get_operation_contents(operation)
    if contents is None:
        raise HTTPException(status_code=404, detail=f"No cached data for operation: {operation}")
    return contents


# =============================================================================
# Action Endpoints
# =============================================================================


@router.post("/refresh", response_model=ActionResult)
async def refresh_all(
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Clear everything and refetch every catalogued operation."""
    return await manager.refresh_all()


@router.post("/clear", response_model=ActionResult)
async def clear_all(
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Clear everything without refetching."""
    return await manager.clear_all()


@router.post("/operations/{operation}/refresh", response_model=ActionResult)
async def refresh_operation(
    operation: str,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Refresh one operation."""
    return await manager.refresh_operation(operation)


@router.post("/operations/{operation}/clear", response_model=ActionResult)
async def clear_operation(
    operation: str,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Clear one operation."""
    return await manager.clear_operation(operation)


@router.post("/groups/{name}/refresh", response_model=ActionResult)
async def refresh_group(
    name: str,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Refresh every operation in a service group."""
    return _raise_for_unknown_group(await manager.refresh_group(name))


@router.post("/groups/{name}/clear", response_model=ActionResult)
async def clear_group(
    name: str,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Clear every operation in a service group."""
    return _raise_for_unknown_group(await manager.clear_group(name))


# =============================================================================
# Configuration Endpoints
# =============================================================================


@router.get("/config", response_model=CacheConfig)
async def get_config(
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> CacheConfig:
    """Get the cache configuration."""
    return manager.get_config()


@router.put("/config", response_model=ActionResult)
async def update_config(
    config: CacheConfig,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Validate and save the cache configuration."""
    result = manager.save_config(config)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result


@router.put("/config/operations/{operation}/ttl", response_model=ActionResult)
async def set_operation_ttl(
    operation: str,
    update: OperationTTLUpdate,
    manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ActionResult:
    """Set the TTL of one operation."""
    return manager.set_operation_ttl(operation, update.hours)
