"""Per-operation refresh and clear strategies.

The registry maps an exact operation name to a Strategy. Names without a
registration resolve to the default strategy, which can clear an entry but
cannot refresh it: only operations with a known fetch path are proactively
refreshed.
"""

from __future__ import annotations

import logging
from abc import ABC
from abc import abstractmethod
from typing import TYPE_CHECKING
from typing import Any

from ..models import CacheService
from .groups import ServiceGroupCatalog
from .ttl_cache import DurableTTLCache

if TYPE_CHECKING:
    from ..services import CachedDomainService
    from ..services import OperationService

logger = logging.getLogger(__name__)


class Strategy(ABC):
    """Refresh and clear behavior for an operation."""

    @abstractmethod
    async def refresh(self, operation: str) -> None:
        """Fetch fresh data for the operation."""

    @abstractmethod
    async def clear(self, operation: str) -> None:
        """Drop every cached copy of the operation."""


class DefaultStrategy(Strategy):
    """Clears the generic entry; refresh is unsupported and only logs."""

    def __init__(self, cache: DurableTTLCache, catalog: ServiceGroupCatalog) -> None:
        self.cache = cache
        self.catalog = catalog

    async def refresh(self, operation: str) -> None:
        logger.warning(f"No refresh strategy found for operation: {operation}")

    async def clear(self, operation: str) -> None:
        self.cache.evict(self.catalog.service_for(operation), operation)


class RefetchStrategy(Strategy):
    """Re-executes a known query network-only; the entry is replaced only on success."""

    def __init__(
        self,
        cache: DurableTTLCache,
        operation_service: OperationService,
        service: CacheService,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> None:
        self.cache = cache
        self.operation_service = operation_service
        self.service = service
        self.query = query
        self.variables = variables

    async def refresh(self, operation: str) -> None:
        await self.operation_service.query(self.service, self.query, self.variables, network_only=True)
        logger.info(f"Refreshed operation: {operation}")

    async def clear(self, operation: str) -> None:
        self.cache.evict(self.service, operation)


class DomainServiceStrategy(Strategy):
    """Keeps the generic entry and a domain service's private copy in step."""

    def __init__(self, cache: DurableTTLCache, domain_service: CachedDomainService) -> None:
        self.cache = cache
        self.domain_service = domain_service

    async def refresh(self, operation: str) -> None:
        await self.domain_service.refresh()

    async def clear(self, operation: str) -> None:
        self.cache.evict(self.domain_service.service, operation)
        self.domain_service.clear_cache()


class StrategyRegistry:
    """Exact-match lookup from operation name to strategy, with a default fallback."""

    def __init__(self, default: Strategy) -> None:
        self.default = default
        self._strategies: dict[str, Strategy] = {}

    def register(self, operation: str, strategy: Strategy) -> None:
        self._strategies[operation] = strategy

    def resolve(self, operation: str) -> Strategy:
        return self._strategies.get(operation, self.default)

    def is_registered(self, operation: str) -> bool:
        return operation in self._strategies

    def operations(self) -> list[str]:
        return list(self._strategies)


def build_default_registry(
    cache: DurableTTLCache,
    catalog: ServiceGroupCatalog,
    operation_service: OperationService,
    domain_services: list[CachedDomainService],
    queries: dict[str, str],
) -> StrategyRegistry:
    """Build the registry for the catalogued operations.

    Args:
        cache: Operation-level TTL cache
        catalog: Service group catalog (used to place each query on its service)
        operation_service: Executes refetches
        domain_services: Services owning an operation and a private copy of it
        queries: Operation name -> query document for plain refetch operations

    Returns:
        Registry with a strategy per domain service and per query
    """
    registry = StrategyRegistry(DefaultStrategy(cache, catalog))

    for operation, query in queries.items():
        registry.register(
            operation,
            RefetchStrategy(cache, operation_service, catalog.service_for(operation), query),
        )

    for domain_service in domain_services:
        registry.register(domain_service.operation, DomainServiceStrategy(cache, domain_service))

    logger.debug(f"Registered strategies for {len(registry.operations())} operations")
    return registry
