"""Models for dashcache."""

from .base import CamelCaseModel
from .cache import ActionResult
from .cache import CacheEntry
from .cache import CacheOperationStatus
from .cache import CacheService
from .cache import CacheStatusResponse
from .cache import OperationCacheContents
from .cache import OperationCacheStatus
from .cache import ScheduledRefreshInfo
from .cache import to_minutes

__all__ = [
    "ActionResult",
    "CacheEntry",
    "CacheOperationStatus",
    "CacheService",
    "CacheStatusResponse",
    "CamelCaseModel",
    "OperationCacheContents",
    "OperationCacheStatus",
    "ScheduledRefreshInfo",
    "to_minutes",
]
