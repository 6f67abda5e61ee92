"""dashcache - operation-level TTL cache manager for dashboard queries.

This package holds all cache state, policy, strategies, status and
scheduling logic. It has no HTTP surface; see dashcached for the daemon.
"""

from .cache import CacheManager
from .cache import DurableTTLCache
from .config import CacheConfig
from .config import ConfigStore
from .runtime import CacheRuntime
from .runtime import build_runtime

__version__ = "0.1.0"

__all__ = [
    "CacheConfig",
    "CacheManager",
    "CacheRuntime",
    "ConfigStore",
    "DurableTTLCache",
    "build_runtime",
]
