"""Status aggregation over the catalogued operations.

Merges the full universe of known operations with the statuses of the
entries actually stored, so every known operation gets exactly one row.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..config import ConfigStore
from ..models import CacheOperationStatus
from ..models import CacheStatusResponse
from ..models import OperationCacheStatus
from ..models import to_minutes
from .groups import ServiceGroupCatalog

logger = logging.getLogger(__name__)


class StatusAggregator:
    """Builds the status view (read-only)."""

    def __init__(self, catalog: ServiceGroupCatalog, config_store: ConfigStore) -> None:
        """Initialize status aggregator.

        Args:
            catalog: Service groups declaring the known operations
            config_store: Source of TTLs for operations with no stored entry
        """
        self.catalog = catalog
        self.config_store = config_store

    def build_status(self, actual: list[OperationCacheStatus], enabled: bool) -> CacheStatusResponse:
        """Build one status row per catalogued operation.

        Args:
            actual: Statuses of stored entries (may be sparse)
            enabled: Whether caching is enabled

        Returns:
            Status view with a row for every operation in every group
        """
        config = self.config_store.get()
        by_operation = {status.operation_name: status for status in actual}

        rows = []
        for operation in self.catalog.all_operations():
            group = self.catalog.group_for(operation)
            display_name = group.display_name if group else None

            status = by_operation.get(operation)
            if status is not None and status.exists:
                rows.append(
                    CacheOperationStatus(
                        operation=operation,
                        display_name=display_name,
                        is_cached=not status.is_expired,
                        is_stale=bool(status.is_expired),
                        age=status.age or 0,
                        ttl=status.ttl if status.ttl is not None else self._placeholder_ttl(config, operation),
                    )
                )
                continue

            rows.append(
                CacheOperationStatus(
                    operation=operation,
                    display_name=display_name,
                    is_cached=False,
                    is_stale=False,
                    age=0,
                    ttl=self._placeholder_ttl(config, operation),
                )
            )

        message = None if enabled else "Caching is disabled"
        return CacheStatusResponse(enabled=enabled, message=message, data=rows)

    def _placeholder_ttl(self, config, operation: str) -> int:
        override = config.operation_ttls.get(operation)
        if override is not None and override > timedelta(0):
            return to_minutes(override)
        return to_minutes(config.default_ttl)
