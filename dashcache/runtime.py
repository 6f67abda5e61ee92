"""Construction of the process-wide cache runtime.

Builds the single substrate, config store, query clients, services and
cache manager from daemon settings. The daemon and the CLI each own exactly
one CacheRuntime and close it on exit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field

import httpx

from .cache import SERVICE_GROUPS
from .cache import CacheManager
from .cache import DurableTTLCache
from .cache import ServiceGroupCatalog
from .cache import StatusAggregator
from .cache import build_default_registry
from .client import QueryClient
from .config import ConfigStore
from .config import DashcacheSettings
from .models import CacheService
from .services import DASHBOARD_QUERIES
from .services import DashboardService
from .services import MenuSettingsService
from .services import OperationService
from .services import UsersService
from .storage import JsonFileStore
from .storage import KeyValueStore
from .storage import MemoryStore

logger = logging.getLogger(__name__)


@dataclass
class CacheRuntime:
    """Owned instances shared by every caller in the process."""

    settings: DashcacheSettings
    store: KeyValueStore
    config_store: ConfigStore
    cache: DurableTTLCache
    manager: CacheManager
    operation_service: OperationService
    dashboard_service: DashboardService
    users_service: UsersService
    menu_settings_service: MenuSettingsService
    clients: dict[CacheService, QueryClient] = field(default_factory=dict)

    async def aclose(self) -> None:
        for client in self.clients.values():
            await client.aclose()


def build_runtime(
    settings: DashcacheSettings,
    store: KeyValueStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CacheRuntime:
    """Build the cache runtime.

    Args:
        settings: Daemon settings
        store: Substrate override (default: JSON file store, or an in-memory
            store when persistence is disabled)
        transport: httpx transport override for the query clients

    Returns:
        Fully wired CacheRuntime
    """
    if store is None:
        if settings.persistence:
            store = JsonFileStore(settings.resolved_store_path)
        else:
            store = MemoryStore()

    clients = {
        CacheService.WAREHOUSE: QueryClient(
            CacheService.WAREHOUSE,
            settings.warehouse_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        ),
        CacheService.API: QueryClient(
            CacheService.API,
            settings.api_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        ),
    }

    config_store = ConfigStore(store)
    cache = DurableTTLCache(
        store,
        config_store,
        normalized_caches={service: client.cache for service, client in clients.items()},
    )
    catalog = ServiceGroupCatalog(SERVICE_GROUPS)

    operation_service = OperationService(clients, cache)
    dashboard_service = DashboardService(operation_service)
    users_service = UsersService(operation_service)
    menu_settings_service = MenuSettingsService(operation_service)

    registry = build_default_registry(
        cache,
        catalog,
        operation_service,
        domain_services=[users_service, menu_settings_service],
        queries=DASHBOARD_QUERIES,
    )
    manager = CacheManager(
        cache,
        config_store,
        registry,
        catalog,
        StatusAggregator(catalog, config_store),
        settle_delay=settings.refresh_settle_seconds,
    )

    logger.info(f"Cache runtime ready ({len(catalog.all_operations())} operations in {len(catalog.list())} groups)")

    return CacheRuntime(
        settings=settings,
        store=store,
        config_store=config_store,
        cache=cache,
        manager=manager,
        operation_service=operation_service,
        dashboard_service=dashboard_service,
        users_service=users_service,
        menu_settings_service=menu_settings_service,
        clients=clients,
    )
