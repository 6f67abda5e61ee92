"""
Unit tests for the service group catalog and status aggregation.
"""

from datetime import timedelta

import pytest

from dashcache.cache import ServiceGroup
from dashcache.cache import ServiceGroupCatalog
from dashcache.cache import StatusAggregator
from dashcache.config import CacheConfig
from dashcache.config import ConfigStore
from dashcache.errors import UnknownServiceGroupError
from dashcache.models import CacheService
from dashcache.models import OperationCacheStatus


@pytest.fixture
def catalog() -> ServiceGroupCatalog:
    return ServiceGroupCatalog(
        [
            ServiceGroup(name="reports", display_name="Reports", operations=("A", "B")),
            ServiceGroup(name="settings", display_name="Settings", operations=("C",), service=CacheService.API),
            ServiceGroup(name="overlap", display_name="Overlap", operations=("B",)),
        ]
    )


@pytest.fixture
def aggregator(catalog: ServiceGroupCatalog, config_store: ConfigStore) -> StatusAggregator:
    return StatusAggregator(catalog, config_store)


@pytest.mark.unit
class TestServiceGroupCatalog:
    """Test group lookup."""

    def test_default_catalog(self) -> None:
        catalog = ServiceGroupCatalog()

        assert [group.name for group in catalog.list()] == ["dashboard", "menus", "users"]
        assert catalog.get("dashboard").operations == (
            "GetQuarterlyMetrics",
            "GetDashboardWidgets",
            "GetPlayerAnalytics",
        )
        assert catalog.service_for("MenuSettingsHybrid") == CacheService.API

    def test_unknown_group_raises(self, catalog: ServiceGroupCatalog) -> None:
        with pytest.raises(UnknownServiceGroupError) as exc_info:
            catalog.get("doesNotExist")

        assert str(exc_info.value) == "Unknown service group: doesNotExist"

    def test_lookup_is_case_sensitive(self, catalog: ServiceGroupCatalog) -> None:
        with pytest.raises(UnknownServiceGroupError):
            catalog.get("Reports")

    def test_all_operations_deduplicates_in_order(self, catalog: ServiceGroupCatalog) -> None:
        assert catalog.all_operations() == ["A", "B", "C"]

    def test_group_for_returns_first_declaring_group(self, catalog: ServiceGroupCatalog) -> None:
        assert catalog.group_for("B").name == "reports"
        assert catalog.group_for("Z") is None

    def test_service_for_unknown_operation_defaults_to_warehouse(self, catalog: ServiceGroupCatalog) -> None:
        assert catalog.service_for("C") == CacheService.API
        assert catalog.service_for("Z") == CacheService.WAREHOUSE


@pytest.mark.unit
class TestStatusAggregator:
    """Test the merged status view."""

    def test_one_row_per_catalogued_operation(self, aggregator: StatusAggregator) -> None:
        response = aggregator.build_status([], enabled=True)

        assert [row.operation for row in response.data] == ["A", "B", "C"]
        assert all(not row.is_cached and not row.is_stale and row.age == 0 for row in response.data)
        assert response.enabled is True
        assert response.message is None

    def test_placeholder_ttl_uses_positive_override(
        self,
        aggregator: StatusAggregator,
        config_store: ConfigStore,
    ) -> None:
        config_store.set(
            CacheConfig(
                default_ttl=timedelta(hours=2),
                operation_ttls={"A": timedelta(minutes=10), "B": timedelta(0)},
            )
        )

        rows = {row.operation: row for row in aggregator.build_status([], enabled=True).data}

        assert rows["A"].ttl == 10
        assert rows["B"].ttl == 120
        assert rows["C"].ttl == 120

    def test_actual_statuses_are_merged(self, aggregator: StatusAggregator) -> None:
        actual = [
            OperationCacheStatus(operation_name="A", exists=True, age=5, ttl=60, is_expired=False, expires_in=55),
            OperationCacheStatus(operation_name="C", exists=True, age=90, ttl=60, is_expired=True, expires_in=-30),
        ]

        rows = {row.operation: row for row in aggregator.build_status(actual, enabled=True).data}

        assert rows["A"].is_cached is True
        assert rows["A"].is_stale is False
        assert rows["A"].age == 5
        assert rows["C"].is_cached is False
        assert rows["C"].is_stale is True
        assert rows["B"].is_cached is False

    def test_entries_outside_the_catalog_are_ignored(self, aggregator: StatusAggregator) -> None:
        actual = [OperationCacheStatus(operation_name="Z", exists=True, age=1, ttl=60, is_expired=False)]

        response = aggregator.build_status(actual, enabled=True)

        assert "Z" not in [row.operation for row in response.data]

    def test_display_name_comes_from_group(self, aggregator: StatusAggregator) -> None:
        rows = {row.operation: row for row in aggregator.build_status([], enabled=True).data}

        assert rows["B"].display_name == "Reports"
        assert rows["C"].display_name == "Settings"

    def test_disabled_message(self, aggregator: StatusAggregator) -> None:
        response = aggregator.build_status([], enabled=False)

        assert response.enabled is False
        assert response.message == "Caching is disabled"
        assert len(response.data) == 3

    def test_serializes_with_camel_case(self, aggregator: StatusAggregator) -> None:
        dumped = aggregator.build_status([], enabled=True).model_dump(by_alias=True)

        assert set(dumped["data"][0]) == {"operation", "displayName", "isCached", "isStale", "age", "ttl"}
