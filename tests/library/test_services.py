"""
Unit tests for the operation service, dashboard service and domain services.

The runtime fixture wires every service to the fake GraphQL backend.
"""

import pytest

from dashcache.errors import QueryError
from dashcache.errors import UnknownOperationError
from dashcache.models import CacheService
from dashcache.runtime import CacheRuntime
from dashcache.services import DASHBOARD_OPERATIONS
from dashcache.services.dashboard import QUARTERLY_METRICS_QUERY

WAREHOUSE = CacheService.WAREHOUSE


@pytest.mark.unit
class TestOperationService:
    """Test operation-level caching in front of the clients."""

    async def test_miss_fetches_and_stores(self, runtime: CacheRuntime, graphql_server) -> None:
        data = await runtime.operation_service.query(WAREHOUSE, QUARTERLY_METRICS_QUERY)

        assert data == {"operation": "GetQuarterlyMetrics", "version": 1}
        assert graphql_server.calls == ["GetQuarterlyMetrics"]
        assert runtime.cache.get(WAREHOUSE, "GetQuarterlyMetrics") == data

    async def test_hit_skips_network(self, runtime: CacheRuntime, graphql_server) -> None:
        runtime.cache.put(WAREHOUSE, "GetQuarterlyMetrics", {"cached": True})

        data = await runtime.operation_service.query(WAREHOUSE, QUARTERLY_METRICS_QUERY)

        assert data == {"cached": True}
        assert graphql_server.calls == []

    async def test_network_only_bypasses_cache(self, runtime: CacheRuntime, graphql_server) -> None:
        runtime.cache.put(WAREHOUSE, "GetQuarterlyMetrics", {"cached": True})
        graphql_server.version = 2

        data = await runtime.operation_service.query(WAREHOUSE, QUARTERLY_METRICS_QUERY, network_only=True)

        assert data["version"] == 2
        assert runtime.cache.get(WAREHOUSE, "GetQuarterlyMetrics") == data

    async def test_anonymous_query_is_rejected(self, runtime: CacheRuntime) -> None:
        with pytest.raises(UnknownOperationError):
            await runtime.operation_service.query(WAREHOUSE, "{ quarterlyMetrics { quarter } }")

    async def test_failure_is_not_cached(self, runtime: CacheRuntime, graphql_server) -> None:
        graphql_server.failing.add("GetQuarterlyMetrics")

        with pytest.raises(QueryError):
            await runtime.operation_service.query(WAREHOUSE, QUARTERLY_METRICS_QUERY)

        assert runtime.cache.get(WAREHOUSE, "GetQuarterlyMetrics") is None

    async def test_never_cached_operation_always_fetches(self, runtime: CacheRuntime, graphql_server) -> None:
        query = "query GetWidgets { widgets { id } }"

        await runtime.operation_service.query(CacheService.API, query, network_only=True)
        await runtime.operation_service.query(CacheService.API, query, network_only=True)

        assert graphql_server.calls == ["GetWidgets", "GetWidgets"]
        assert runtime.cache.get(CacheService.API, "GetWidgets") is None


@pytest.mark.unit
class TestDashboardService:
    """Test the dashboard operations."""

    async def test_getters_use_their_operations(self, runtime: CacheRuntime, graphql_server) -> None:
        service = runtime.dashboard_service

        await service.get_quarterly_metrics()
        await service.get_dashboard_widgets()
        await service.get_player_analytics()

        assert graphql_server.calls == list(DASHBOARD_OPERATIONS)

    async def test_refresh_all_dashboard_data_refetches(self, runtime: CacheRuntime, graphql_server) -> None:
        await runtime.dashboard_service.get_quarterly_metrics()
        graphql_server.version = 2

        results = await runtime.dashboard_service.refresh_all_dashboard_data()

        assert set(results) == set(DASHBOARD_OPERATIONS)
        assert results["GetQuarterlyMetrics"]["version"] == 2
        assert runtime.cache.get(WAREHOUSE, "GetQuarterlyMetrics")["version"] == 2

    async def test_prefetch_reports_failures_after_all_complete(
        self,
        runtime: CacheRuntime,
        graphql_server,
    ) -> None:
        graphql_server.failing.add("GetPlayerAnalytics")

        with pytest.raises(QueryError, match="Failed to prefetch 1 queries"):
            await runtime.dashboard_service.refresh_all_dashboard_data()

        assert runtime.cache.get(WAREHOUSE, "GetQuarterlyMetrics") is not None
        assert runtime.cache.get(WAREHOUSE, "GetDashboardWidgets") is not None


@pytest.mark.unit
class TestDomainServices:
    """Test services holding a private copy."""

    async def test_users_page_variables(self, runtime: CacheRuntime) -> None:
        assert runtime.users_service.variables() == {"page": 1, "pageSize": 50}

    async def test_private_copy_is_served_while_fresh(self, runtime: CacheRuntime, graphql_server, clock) -> None:
        service = runtime.users_service

        first = await service.get_users()
        runtime.cache.evict(WAREHOUSE, "WarehouseUsers")
        clock.advance(minutes=5)
        second = await service.get_users()

        assert first == second
        assert graphql_server.calls == ["WarehouseUsers"]

    async def test_stale_private_copy_refetches(self, runtime: CacheRuntime, graphql_server, clock) -> None:
        service = runtime.users_service

        await service.get_users()
        runtime.cache.evict(WAREHOUSE, "WarehouseUsers")
        clock.advance(minutes=6)
        await service.get_users()

        assert graphql_server.calls == ["WarehouseUsers", "WarehouseUsers"]

    async def test_refresh_replaces_both_layers(self, runtime: CacheRuntime, graphql_server) -> None:
        service = runtime.menu_settings_service
        await service.get_menu_settings()
        graphql_server.version = 2

        await service.refresh()

        assert (await service.get_menu_settings())["version"] == 2
        assert runtime.cache.get(CacheService.API, "MenuSettingsHybrid")["version"] == 2

    async def test_failed_refresh_keeps_previous_data(self, runtime: CacheRuntime, graphql_server) -> None:
        service = runtime.menu_settings_service
        previous = await service.get_menu_settings()
        graphql_server.failing.add("MenuSettingsHybrid")

        with pytest.raises(QueryError):
            await service.refresh()

        assert service.has_fresh_copy() is True
        assert await service.get_menu_settings() == previous
        assert runtime.cache.get(CacheService.API, "MenuSettingsHybrid") == previous

    async def test_clear_cache_drops_private_copy(self, runtime: CacheRuntime) -> None:
        service = runtime.users_service
        await service.get_users()

        service.clear_cache()

        assert service.has_fresh_copy() is False
