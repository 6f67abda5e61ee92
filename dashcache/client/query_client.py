"""GraphQL query-execution client.

One client per remote service. Queries are POSTed as {query, variables}
and results are kept in the client's NormalizedCache according to the
fetch policy.

Contract:
- Inputs: GraphQL documents, variables, fetch policy
- Outputs: The response "data" object
- Side Effects: HTTP requests; writes to the normalized cache
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from ..errors import QueryError
from ..models import CacheService
from .normalized import NormalizedCache

logger = logging.getLogger(__name__)

FETCH_POLICIES = ("cache-first", "network-only", "no-cache")

_OPERATION_NAME = re.compile(r"^\s*(?:query|mutation|subscription)\s+([_A-Za-z][_0-9A-Za-z]*)")


def get_operation_name(query: str) -> str | None:
    """Extract the operation name of a GraphQL document.

    Example:
        >>> get_operation_name("query WarehouseUsers($page: Int) { users }")
        'WarehouseUsers'
        >>> get_operation_name("{ users }") is None
        True
    """
    match = _OPERATION_NAME.match(query)
    return match.group(1) if match else None


class QueryClient:
    """Async GraphQL client for one service endpoint."""

    def __init__(
        self,
        service: CacheService,
        endpoint: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize query client.

        Args:
            service: Service this client talks to
            endpoint: GraphQL endpoint URL
            api_key: Optional API key sent as x-api-key
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.service = service
        self.endpoint = endpoint
        self.cache = NormalizedCache()

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["x-api-key"] = api_key

        self._http = httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        fetch_policy: str = "cache-first",
    ) -> dict[str, Any]:
        """Execute a GraphQL document.

        Args:
            query: GraphQL document
            variables: Query variables
            fetch_policy: cache-first (serve from the normalized cache when
                present), network-only (always fetch, then store) or no-cache
                (always fetch, never store)

        Returns:
            The response "data" object

        Raises:
            ValueError: If fetch_policy is unknown
            QueryError: On transport failure, non-2xx status or GraphQL errors
        """
        if fetch_policy not in FETCH_POLICIES:
            raise ValueError(f"Unknown fetch policy: {fetch_policy}")

        operation = get_operation_name(query)
        field = operation or query

        if fetch_policy == "cache-first":
            cached = self.cache.read(field, variables)
            if cached is not None:
                logger.debug(f"[{self.service.value}] Normalized cache hit for {operation}")
                return cached

        payload: dict[str, Any] = {"query": query, "variables": variables or {}}
        if operation:
            payload["operationName"] = operation

        try:
            response = await self._http.post(self.endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise QueryError(
                f"{operation or 'query'} failed with HTTP {e.response.status_code}",
                operation=operation,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise QueryError(f"{operation or 'query'} failed: {e}", operation=operation) from e
        except ValueError as e:
            raise QueryError(f"{operation or 'query'} returned invalid JSON: {e}", operation=operation) from e

        if not isinstance(body, dict):
            raise QueryError(f"{operation or 'query'} returned an unexpected response", operation=operation)

        errors = body.get("errors")
        if errors:
            messages = "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error) for error in errors
            )
            raise QueryError(f"{operation or 'query'} failed: {messages}", operation=operation)

        data = body.get("data")
        if data is None:
            raise QueryError(f"{operation or 'query'} returned no data", operation=operation)

        if fetch_policy != "no-cache":
            self.cache.write(field, variables, data)

        return data

    async def aclose(self) -> None:
        await self._http.aclose()
