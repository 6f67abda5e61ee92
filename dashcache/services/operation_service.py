"""Operation-level caching in front of the query clients.

Every query is identified by its operation name. A cached result is served
when fresh; otherwise the query is executed and a successful result is
written back to the TTL cache.

Contract:
- Inputs: Service, GraphQL document, variables
- Outputs: Response data
- Side Effects: Remote queries; TTL cache writes
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..cache.ttl_cache import DurableTTLCache
from ..client import QueryClient
from ..client import get_operation_name
from ..errors import QueryError
from ..errors import UnknownOperationError
from ..models import CacheService

logger = logging.getLogger(__name__)


class OperationService:
    """Executes queries through the operation-level TTL cache."""

    def __init__(self, clients: dict[CacheService, QueryClient], cache: DurableTTLCache) -> None:
        """Initialize operation service.

        Args:
            clients: One query client per service
            cache: Operation-level TTL cache
        """
        self.clients = clients
        self.cache = cache

    def _client(self, service: CacheService) -> QueryClient:
        client = self.clients.get(service)
        if client is None:
            raise QueryError(f"No query client configured for service {service.value}")
        return client

    async def query(
        self,
        service: CacheService,
        query: str,
        variables: dict[str, Any] | None = None,
        network_only: bool = False,
    ) -> Any:
        """Execute a query with operation-level caching.

        Args:
            service: Service to query
            query: GraphQL document (must be a named operation)
            variables: Query variables
            network_only: Skip the cache lookup and always fetch

        Returns:
            Response data

        Raises:
            UnknownOperationError: If the document has no operation name
            QueryError: If the remote query fails
        """
        operation = get_operation_name(query)
        if operation is None:
            raise UnknownOperationError("<anonymous>")

        if not network_only:
            cached = self.cache.get(service, operation)
            if cached is not None:
                return cached

        logger.debug(f"Executing query {operation} on {service.value}")
        data = await self._client(service).execute(
            query,
            variables,
            fetch_policy="network-only" if network_only else "cache-first",
        )

        if data:
            self.cache.put(service, operation, data)

        return data

    async def prefetch(
        self,
        service: CacheService,
        queries: dict[str, tuple[str, dict[str, Any] | None]],
        network_only: bool = False,
    ) -> dict[str, Any]:
        """Execute several queries in parallel.

        Args:
            service: Service to query
            queries: Result key -> (document, variables)
            network_only: Skip the cache lookup for every query

        Returns:
            Result key -> response data

        Raises:
            QueryError: If any query fails (after all have completed)
        """
        keys = list(queries)
        results = await asyncio.gather(
            *(self.query(service, query, variables, network_only) for query, variables in queries.values()),
            return_exceptions=True,
        )

        failures = [(key, result) for key, result in zip(keys, results) if isinstance(result, Exception)]
        if failures:
            for key, error in failures:
                logger.error(f"Prefetch of {key} failed: {error}")
            raise QueryError(f"Failed to prefetch {len(failures)} queries")

        return dict(zip(keys, results))

    def clear_operations(self, service: CacheService, operations: list[str] | tuple[str, ...]) -> None:
        for operation in operations:
            self.cache.evict(service, operation)
