"""Operation-level TTL cache management.

Public Interface:
    - DurableTTLCache: Entries keyed by (service, operation) with TTL expiry
    - ServiceGroup, SERVICE_GROUPS, ServiceGroupCatalog: Static group catalog
    - Strategy, DefaultStrategy, RefetchStrategy, DomainServiceStrategy,
      StrategyRegistry, build_default_registry: Per-operation refresh/clear
    - StatusAggregator: Complete status view
    - next_occurrence: Next scheduled refresh
    - CacheManager: Orchestrates actions and status
    - CacheScheduler: Status poll and daily refresh jobs
"""

from .groups import SERVICE_GROUPS
from .groups import ServiceGroup
from .groups import ServiceGroupCatalog
from .manager import CacheManager
from .schedule import next_occurrence
from .scheduler import CacheScheduler
from .status import StatusAggregator
from .strategies import DefaultStrategy
from .strategies import DomainServiceStrategy
from .strategies import RefetchStrategy
from .strategies import Strategy
from .strategies import StrategyRegistry
from .strategies import build_default_registry
from .ttl_cache import DurableTTLCache

__all__ = [
    "SERVICE_GROUPS",
    "ServiceGroup",
    "ServiceGroupCatalog",
    "CacheManager",
    "next_occurrence",
    "CacheScheduler",
    "StatusAggregator",
    "DefaultStrategy",
    "DomainServiceStrategy",
    "RefetchStrategy",
    "Strategy",
    "StrategyRegistry",
    "build_default_registry",
    "DurableTTLCache",
]
