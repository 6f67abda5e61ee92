"""Cache orchestration.

CacheManager composes the TTL cache, config store, strategy registry and
status aggregator into the actions exposed to callers. Actions never raise:
each returns an ActionResult, and each recomputes the status view exactly
once when it finishes, whether or not it succeeded.

Contract:
- Inputs: Operation and group names, configuration updates
- Outputs: ActionResult, status views, scheduled refresh info
- Side Effects: Cache eviction and refetch; config writes
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from ..config import CacheConfig
from ..config import ConfigStore
from ..config import validate_config
from ..errors import UnknownServiceGroupError
from ..models import ActionResult
from ..models import CacheStatusResponse
from ..models import OperationCacheContents
from ..models import ScheduledRefreshInfo
from .groups import ServiceGroupCatalog
from .schedule import next_occurrence
from .status import StatusAggregator
from .strategies import StrategyRegistry
from .ttl_cache import DurableTTLCache

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 2.0


class CacheManager:
    """Entry point for every cache action and status query."""

    def __init__(
        self,
        cache: DurableTTLCache,
        config_store: ConfigStore,
        registry: StrategyRegistry,
        catalog: ServiceGroupCatalog,
        aggregator: StatusAggregator,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize cache manager.

        Args:
            cache: Operation-level TTL cache
            config_store: Cache configuration store
            registry: Per-operation strategies
            catalog: Service group catalog
            aggregator: Status view builder
            settle_delay: Seconds to wait after refresh_all before recomputing status
            clock: Returns local wall-clock now for scheduled refresh info
        """
        self.cache = cache
        self.config_store = config_store
        self.registry = registry
        self.catalog = catalog
        self.aggregator = aggregator
        self.settle_delay = settle_delay
        self.clock = clock or datetime.now

        self._last_status: CacheStatusResponse | None = None
        self._last_scheduled: ScheduledRefreshInfo | None = None
        self._config_listeners: list[Callable[[CacheConfig], None]] = []

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def last_status(self) -> CacheStatusResponse | None:
        """Status snapshot from the most recent update_status() call."""
        return self._last_status

    @property
    def last_scheduled_refresh(self) -> ScheduledRefreshInfo | None:
        return self._last_scheduled

    def get_status(self) -> CacheStatusResponse:
        """Compute the status view in a single aggregation pass."""
        config = self.config_store.get()
        return self.aggregator.build_status(self.cache.all_statuses(), config.enable_caching)

    def update_status(self) -> CacheStatusResponse:
        """Recompute and keep the status view and scheduled refresh info."""
        self._last_status = self.get_status()
        self._last_scheduled = self.get_scheduled_refresh_info()
        return self._last_status

    def get_scheduled_refresh_info(self) -> ScheduledRefreshInfo:
        return next_occurrence(self.config_store.get(), self.clock())

    def get_operation_contents(self, operation: str) -> OperationCacheContents | None:
        return self.cache.contents(self.catalog.service_for(operation), operation)

    # =========================================================================
    # Bulk actions
    # =========================================================================

    async def refresh_all(self) -> ActionResult:
        """Evict everything, refetch every catalogued operation, then settle."""
        action = "refresh_all"
        logger.info("Refreshing all cached operations")
        try:
            self.cache.evict_all()
            operations = self.catalog.all_operations()
            await self._clear_operations(operations)
            failures = await self._refresh_operations(operations)

            # Let the query clients' own caches converge before status is read
            await asyncio.sleep(self.settle_delay)

            if failures:
                return ActionResult(success=False, action=action, error=self._describe_failures(failures))
            return ActionResult(success=True, action=action)
        except Exception as e:
            logger.error(f"Error refreshing all operations: {e}")
            return ActionResult(success=False, action=action, error=str(e))
        finally:
            self.update_status()

    async def clear_all(self) -> ActionResult:
        """Evict everything without refetching."""
        action = "clear_all"
        try:
            removed = self.cache.evict_all()
            await self._clear_operations(self.catalog.all_operations())
            logger.info(f"Cleared all caches ({removed} entries)")
            return ActionResult(success=True, action=action)
        except Exception as e:
            logger.error(f"Error clearing all caches: {e}")
            return ActionResult(success=False, action=action, error=str(e))
        finally:
            self.update_status()

    # =========================================================================
    # Per-operation actions
    # =========================================================================

    async def refresh_operation(self, operation: str) -> ActionResult:
        """Refresh one operation through its strategy.

        The existing entry stays in place until the new fetch succeeds.
        """
        action = "refresh_operation"
        try:
            await self.registry.resolve(operation).refresh(operation)
            return ActionResult(success=True, action=action, target=operation)
        except Exception as e:
            logger.error(f"Error refreshing operation {operation}: {e}")
            return ActionResult(success=False, action=action, target=operation, error=str(e))
        finally:
            self.update_status()

    async def clear_operation(self, operation: str) -> ActionResult:
        action = "clear_operation"
        try:
            await self.registry.resolve(operation).clear(operation)
            return ActionResult(success=True, action=action, target=operation)
        except Exception as e:
            logger.error(f"Error clearing operation {operation}: {e}")
            return ActionResult(success=False, action=action, target=operation, error=str(e))
        finally:
            self.update_status()

    # =========================================================================
    # Group actions
    # =========================================================================

    async def refresh_group(self, name: str) -> ActionResult:
        """Clear every operation of a group (private copies included), then refresh them in parallel."""
        action = "refresh_group"
        try:
            group = self.catalog.get(name)
            await self._clear_operations(list(group.operations))

            failures = await self._refresh_operations(list(group.operations))
            if failures:
                return ActionResult(
                    success=False,
                    action=action,
                    target=name,
                    error=self._describe_failures(failures),
                )
            logger.info(f"Refreshed service group {name}")
            return ActionResult(success=True, action=action, target=name)
        except UnknownServiceGroupError as e:
            logger.warning(str(e))
            return ActionResult(success=False, action=action, target=name, error=str(e), error_code=e.code)
        except Exception as e:
            logger.error(f"Error refreshing service group {name}: {e}")
            return ActionResult(success=False, action=action, target=name, error=str(e))
        finally:
            self.update_status()

    async def clear_group(self, name: str) -> ActionResult:
        """Clear every operation of a group through its strategy."""
        action = "clear_group"
        try:
            group = self.catalog.get(name)
            await self._clear_operations(list(group.operations))
            logger.info(f"Cleared service group {name}")
            return ActionResult(success=True, action=action, target=name)
        except UnknownServiceGroupError as e:
            logger.warning(str(e))
            return ActionResult(success=False, action=action, target=name, error=str(e), error_code=e.code)
        except Exception as e:
            logger.error(f"Error clearing service group {name}: {e}")
            return ActionResult(success=False, action=action, target=name, error=str(e))
        finally:
            self.update_status()

    # =========================================================================
    # Configuration
    # =========================================================================

    def get_config(self) -> CacheConfig:
        return self.config_store.get()

    def save_config(self, config: CacheConfig) -> ActionResult:
        """Validate and persist a configuration, then notify listeners."""
        action = "save_config"
        errors = validate_config(config)
        if errors:
            return ActionResult(success=False, action=action, error="; ".join(errors))

        self.config_store.set(config)
        self._notify_config_listeners(config)
        self.update_status()
        return ActionResult(success=True, action=action)

    def set_operation_ttl(self, operation: str, hours: float) -> ActionResult:
        action = "set_operation_ttl"
        if hours < 0:
            return ActionResult(
                success=False,
                action=action,
                target=operation,
                error=f"TTL for {operation} cannot be negative",
            )

        self.config_store.set_operation_ttl(operation, hours)
        self._notify_config_listeners(self.config_store.get())
        self.update_status()
        return ActionResult(success=True, action=action, target=operation)

    def add_config_listener(self, listener: Callable[[CacheConfig], None]) -> None:
        """Register a callback invoked with the new config after every save."""
        self._config_listeners.append(listener)

    def _notify_config_listeners(self, config: CacheConfig) -> None:
        for listener in self._config_listeners:
            try:
                listener(config)
            except Exception as e:
                logger.error(f"Config listener failed: {e}")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _clear_operations(self, operations: list[str]) -> None:
        for operation in operations:
            await self.registry.resolve(operation).clear(operation)

    async def _refresh_operations(self, operations: list[str]) -> dict[str, Exception]:
        results = await asyncio.gather(
            *(self.registry.resolve(operation).refresh(operation) for operation in operations),
            return_exceptions=True,
        )
        failures = {}
        for operation, result in zip(operations, results):
            if isinstance(result, Exception):
                logger.error(f"Refresh of {operation} failed: {result}")
                failures[operation] = result
        return failures

    def _describe_failures(self, failures: dict[str, Exception]) -> str:
        details = ", ".join(f"{operation}: {error}" for operation, error in failures.items())
        return f"Failed to refresh {len(failures)} operations ({details})"
