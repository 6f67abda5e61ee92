"""Query-execution client for remote GraphQL services.

Public Interface:
    - QueryClient: Async GraphQL client (httpx)
    - NormalizedCache: Client-owned result cache (reset_all/evict/gc)
    - get_operation_name: Extract the operation name from a document
"""

from .normalized import NormalizedCache
from .query_client import FETCH_POLICIES
from .query_client import QueryClient
from .query_client import get_operation_name

__all__ = [
    "FETCH_POLICIES",
    "NormalizedCache",
    "QueryClient",
    "get_operation_name",
]
