"""Durable TTL cache keyed by (service, operation).

Entries are stored in the key-value substrate under
"{prefix}-{service}-{operation}" where prefix is the configured storage
prefix. Caching is best-effort: storage failures are logged and treated as
a miss (read) or a no-op (write), and a corrupt stored value is removed and
treated as a miss.

Contract:
- Inputs: Service, operation name, JSON-serializable data
- Outputs: Cached data, entry status, entry contents
- Side Effects: Writes/removes substrate keys; evicts and resets the query
  clients' normalized caches
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from typing import Any

from ..client import NormalizedCache
from ..config import ConfigStore
from ..errors import StorageError
from ..models import CacheEntry
from ..models import CacheService
from ..models import OperationCacheContents
from ..models import OperationCacheStatus
from ..models import to_minutes
from ..storage import KeyValueStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DurableTTLCache:
    """Operation-level cache over a durable key-value substrate."""

    def __init__(
        self,
        store: KeyValueStore,
        config_store: ConfigStore,
        normalized_caches: dict[CacheService, NormalizedCache] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize TTL cache.

        Args:
            store: Durable key-value substrate
            config_store: Source of TTLs and the storage prefix (read on every call)
            normalized_caches: Query-client caches to keep consistent on eviction
            clock: Returns the current instant (default: aware UTC now)
        """
        self.store = store
        self.config_store = config_store
        self.normalized_caches = normalized_caches or {}
        self.clock = clock or _utc_now

    def key_for(self, service: CacheService, operation: str, prefix: str | None = None) -> str:
        if prefix is None:
            prefix = self.config_store.get().storage_prefix
        return f"{prefix}-{service.value}-{operation}"

    # =========================================================================
    # Reads and writes
    # =========================================================================

    def put(self, service: CacheService, operation: str, data: Any) -> bool:
        """Store data for an operation.

        Nothing is stored when caching is disabled or the operation's TTL is
        zero.

        Returns:
            True if an entry was written
        """
        config = self.config_store.get()
        if not config.enable_caching:
            logger.debug(f"Caching disabled, not storing {operation}")
            return False

        ttl = config.ttl_for(operation)
        if ttl <= timedelta(0):
            logger.info(f"Skipping cache for {operation} (TTL = 0)")
            return False

        key = self.key_for(service, operation, config.storage_prefix)
        entry = CacheEntry(
            data=data,
            timestamp=self.clock(),
            ttl=ttl,
            operation=operation,
            service=service,
        )
        try:
            self.store.set(key, json.dumps(entry.to_dict()))
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Error writing cache entry for {operation}: {e}")
            return False

        logger.info(f"Cached data for {operation} (TTL: {to_minutes(ttl)} minutes)")
        return True

    def get(self, service: CacheService, operation: str) -> Any | None:
        """Get fresh data for an operation.

        An expired entry is removed and reported as a miss. Operations whose
        configured TTL is zero always miss.

        Returns:
            Cached data, or None on a miss
        """
        config = self.config_store.get()
        if not config.enable_caching or config.ttl_for(operation) <= timedelta(0):
            return None

        key = self.key_for(service, operation, config.storage_prefix)
        entry = self._read_entry(key)
        if entry is None:
            return None

        now = self.clock()
        if entry.is_expired(now):
            logger.info(
                f"Cache expired for {operation} "
                f"(age: {to_minutes(entry.age(now))} minutes, TTL: {to_minutes(entry.ttl)} minutes)"
            )
            self._remove(key)
            return None

        logger.debug(
            f"Serving cached data for {operation} "
            f"(age: {to_minutes(entry.age(now))} minutes, TTL: {to_minutes(entry.ttl)} minutes)"
        )
        return entry.data

    # =========================================================================
    # Eviction
    # =========================================================================

    def evict(self, service: CacheService, operation: str) -> None:
        """Remove one operation's entry and forget it in the service's normalized cache."""
        self._remove(self.key_for(service, operation))

        normalized = self.normalized_caches.get(service)
        if normalized is not None:
            normalized.evict(operation)
            normalized.gc()

        logger.info(f"Cleared cache for operation: {operation}")

    def evict_service(self, service: CacheService) -> int:
        """Remove every entry of one service and reset its normalized cache.

        Returns:
            Number of entries removed
        """
        prefix = f"{self.config_store.get().storage_prefix}-{service.value}-"
        removed = self._remove_prefix(prefix)

        normalized = self.normalized_caches.get(service)
        if normalized is not None:
            normalized.reset_all()

        logger.info(f"Cleared {removed} cache entries for service {service.value}")
        return removed

    def evict_all(self) -> int:
        """Remove every entry under the storage prefix and reset all normalized caches.

        Returns:
            Number of entries removed
        """
        prefix = f"{self.config_store.get().storage_prefix}-"
        removed = self._remove_prefix(prefix)

        for normalized in self.normalized_caches.values():
            normalized.reset_all()

        logger.info(f"Cleared {removed} cache entries")
        return removed

    # =========================================================================
    # Inspection
    # =========================================================================

    def status(self, service: CacheService, operation: str) -> OperationCacheStatus:
        """Compute the current status of one operation's entry."""
        config = self.config_store.get()
        key = self.key_for(service, operation, config.storage_prefix)

        try:
            entry = self._load(key)
        except StorageError as e:
            logger.error(f"Error getting cache status for {operation}: {e}")
            return OperationCacheStatus(operation_name=operation, exists=False, error=str(e))

        if entry is None:
            return OperationCacheStatus(operation_name=operation, exists=False)

        now = self.clock()
        age = entry.age(now)
        return OperationCacheStatus(
            operation_name=operation,
            exists=True,
            service=entry.service,
            age=to_minutes(age),
            ttl=to_minutes(entry.ttl),
            is_expired=entry.is_expired(now) or config.ttl_for(operation) <= timedelta(0),
            expires_in=to_minutes(entry.ttl - age),
        )

    def all_statuses(self) -> list[OperationCacheStatus]:
        """Status of every stored entry under the storage prefix."""
        prefix = f"{self.config_store.get().storage_prefix}-"
        services = {service.value: service for service in CacheService}

        statuses = []
        for key in self._keys():
            if not key.startswith(prefix):
                continue
            service_value, _, operation = key[len(prefix) :].partition("-")
            service = services.get(service_value)
            if service is None or not operation:
                continue

            status = self.status(service, operation)
            if status.exists:
                statuses.append(status)

        return statuses

    def contents(self, service: CacheService, operation: str) -> OperationCacheContents | None:
        """Stored entry of one operation including its data, or None if absent."""
        key = self.key_for(service, operation)
        entry = self._read_entry(key)
        if entry is None:
            return None

        now = self.clock()
        age = entry.age(now)
        return OperationCacheContents(
            operation=operation,
            service=entry.service,
            key=key,
            data=entry.data,
            timestamp=entry.timestamp,
            age=to_minutes(age),
            ttl=to_minutes(entry.ttl),
            is_expired=entry.is_expired(now),
            expires_in=to_minutes(entry.ttl - age),
        )

    # =========================================================================
    # Substrate access
    # =========================================================================

    def _load(self, key: str) -> CacheEntry | None:
        """Read and decode one entry, removing it if corrupt.

        Raises:
            StorageError: If the substrate read fails
        """
        raw = self.store.get(key)
        if raw is None:
            return None

        try:
            return CacheEntry.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            logger.warning(f"Removing corrupt cache entry {key}: {e}")
            self._remove(key)
            return None

    def _read_entry(self, key: str) -> CacheEntry | None:
        try:
            return self._load(key)
        except StorageError as e:
            logger.error(f"Error reading cache entry {key}: {e}")
            return None

    def _remove(self, key: str) -> None:
        try:
            self.store.remove(key)
        except StorageError as e:
            logger.error(f"Error removing cache entry {key}: {e}")

    def _keys(self) -> list[str]:
        try:
            return self.store.keys()
        except StorageError as e:
            logger.error(f"Error listing cache keys: {e}")
            return []

    def _remove_prefix(self, prefix: str) -> int:
        removed = 0
        for key in self._keys():
            if key.startswith(prefix):
                self._remove(key)
                removed += 1
        return removed
