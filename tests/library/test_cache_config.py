"""
Unit tests for the cache configuration store.

Tests default merging, round-trips, legacy shapes, corrupt blobs and validation.
"""

import json
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from dashcache.config import CONFIG_KEY
from dashcache.config import NEVER_CACHED_OPERATIONS
from dashcache.config import CacheConfig
from dashcache.config import ConfigStore
from dashcache.config import ScheduledRefreshConfig
from dashcache.config import validate_config
from dashcache.errors import ConfigurationError
from dashcache.errors import StorageError
from dashcache.storage import MemoryStore


@pytest.mark.unit
class TestDefaults:
    """Test the built-in default configuration."""

    def test_default_values(self) -> None:
        config = CacheConfig.default()

        assert config.default_ttl == timedelta(hours=24)
        assert config.enable_caching is True
        assert config.scheduled_refresh == ScheduledRefreshConfig(
            enabled=True,
            time="06:00",
            timezone="America/Los_Angeles",
        )
        assert config.storage_prefix == "dashboard-query-cache"

    def test_never_cached_operations_have_zero_ttl(self) -> None:
        config = CacheConfig.default()

        for operation in NEVER_CACHED_OPERATIONS:
            assert config.operation_ttls[operation] == timedelta(0)

    def test_ttl_for_falls_back_to_default(self) -> None:
        config = CacheConfig(operation_ttls={"A": timedelta(minutes=10)})

        assert config.ttl_for("A") == timedelta(minutes=10)
        assert config.ttl_for("Other") == timedelta(hours=24)


@pytest.mark.unit
class TestConfigStore:
    """Test reading and writing through the substrate."""

    def test_get_returns_defaults_when_nothing_stored(self, config_store: ConfigStore) -> None:
        assert config_store.get() == CacheConfig.default()

    def test_round_trip_keeps_explicit_fields(self, config_store: ConfigStore) -> None:
        """Test set() then get() returns explicit fields and defaults elsewhere."""
        config = CacheConfig(
            default_ttl=timedelta(hours=6),
            enable_caching=False,
            scheduled_refresh=ScheduledRefreshConfig(enabled=False, time="22:30", timezone="UTC"),
            operation_ttls={"A": timedelta(minutes=10)},
        )

        config_store.set(config)
        loaded = config_store.get()

        assert loaded.default_ttl == timedelta(hours=6)
        assert loaded.enable_caching is False
        assert loaded.scheduled_refresh == config.scheduled_refresh
        assert loaded.operation_ttls["A"] == timedelta(minutes=10)
        assert loaded.storage_prefix == CacheConfig.default().storage_prefix

    def test_round_trip_restores_never_cached_operations(self, config_store: ConfigStore) -> None:
        """Test operations absent from the saved map come back from defaults."""
        config_store.set(CacheConfig(operation_ttls={"A": timedelta(minutes=10)}))

        loaded = config_store.get()

        for operation in NEVER_CACHED_OPERATIONS:
            assert loaded.operation_ttls[operation] == timedelta(0)

    def test_persisted_blob_uses_camel_case_keys(self, store: MemoryStore, config_store: ConfigStore) -> None:
        config_store.set(CacheConfig.default())

        blob = json.loads(store.get(CONFIG_KEY))

        assert set(blob) == {"defaultTTL", "enableCaching", "scheduledRefresh", "storagePrefix", "operationTTLs"}

    def test_partial_blob_is_merged_with_defaults(self, store: MemoryStore, config_store: ConfigStore) -> None:
        store.set(CONFIG_KEY, json.dumps({"scheduledRefresh": {"time": "08:15"}}))

        loaded = config_store.get()

        assert loaded.scheduled_refresh.time == "08:15"
        assert loaded.scheduled_refresh.enabled is True
        assert loaded.scheduled_refresh.timezone == "America/Los_Angeles"
        assert loaded.default_ttl == timedelta(hours=24)

    def test_invalid_json_returns_exact_defaults(self, store: MemoryStore, config_store: ConfigStore) -> None:
        """Test malformed serialization falls back to the built-in default object."""
        store.set(CONFIG_KEY, "{this is not json")

        assert config_store.get() == CacheConfig.default()

    def test_non_object_blob_returns_defaults(self, store: MemoryStore, config_store: ConfigStore) -> None:
        store.set(CONFIG_KEY, json.dumps(["not", "an", "object"]))

        assert config_store.get() == CacheConfig.default()

    def test_invalid_field_value_returns_defaults(self, store: MemoryStore, config_store: ConfigStore) -> None:
        store.set(CONFIG_KEY, json.dumps({"defaultTTL": "forever"}))

        assert config_store.get() == CacheConfig.default()

    def test_non_object_scheduled_refresh_returns_defaults(self, store: MemoryStore, config_store: ConfigStore) -> None:
        store.set(CONFIG_KEY, json.dumps({"defaultTTL": 3600, "scheduledRefresh": "daily"}))

        assert config_store.get() == CacheConfig.default()

    @pytest.mark.parametrize(
        "persisted",
        [
            ["not", "an", "object"],
            {"ttl": "one day"},
            {"scheduledRefresh": "daily"},
            {"defaultTTL": "forever"},
        ],
    )
    def test_unmergeable_blob_raises_configuration_error(self, config_store: ConfigStore, persisted: object) -> None:
        with pytest.raises(ConfigurationError):
            config_store._merge_with_defaults(persisted)

    def test_operation_ttls_as_json_string(self, store: MemoryStore, config_store: ConfigStore) -> None:
        """Test a serialized-string operationTTLs is parsed."""
        store.set(CONFIG_KEY, json.dumps({"operationTTLs": json.dumps({"A": 600})}))

        loaded = config_store.get()

        assert loaded.operation_ttls["A"] == timedelta(minutes=10)
        assert loaded.operation_ttls["GetWidget"] == timedelta(0)

    def test_unparseable_operation_ttls_string_is_empty(self, store: MemoryStore, config_store: ConfigStore) -> None:
        """Test a broken operationTTLs string is treated as no overrides."""
        store.set(CONFIG_KEY, json.dumps({"defaultTTL": 3600, "operationTTLs": "{broken"}))

        loaded = config_store.get()

        assert loaded.default_ttl == timedelta(hours=1)
        assert loaded.operation_ttls == CacheConfig.default().operation_ttls

    def test_legacy_ttl_in_milliseconds(self, store: MemoryStore, config_store: ConfigStore) -> None:
        store.set(CONFIG_KEY, json.dumps({"ttl": 2 * 60 * 60 * 1000}))

        assert config_store.get().default_ttl == timedelta(hours=2)

    def test_get_ttl(self, config_store: ConfigStore) -> None:
        config_store.set(CacheConfig(operation_ttls={"A": timedelta(minutes=10)}))

        assert config_store.get_ttl("A") == timedelta(minutes=10)
        assert config_store.get_ttl("B") == timedelta(hours=24)

    def test_set_operation_ttl_converts_hours(self, config_store: ConfigStore) -> None:
        config_store.set_operation_ttl("A", 1.5)

        assert config_store.get_ttl("A") == timedelta(minutes=90)

    def test_set_swallows_storage_errors(self) -> None:
        """Test a failing substrate write does not reach the caller."""
        failing = MagicMock()
        failing.set.side_effect = StorageError("quota exceeded")

        ConfigStore(failing).set(CacheConfig.default())

        failing.set.assert_called_once()

    def test_get_survives_storage_errors(self) -> None:
        failing = MagicMock()
        failing.get.side_effect = StorageError("unavailable")

        assert ConfigStore(failing).get() == CacheConfig.default()


@pytest.mark.unit
class TestValidateConfig:
    """Test configuration validation."""

    def test_default_config_is_valid(self) -> None:
        assert validate_config(CacheConfig.default()) == []

    def test_zero_default_ttl_is_invalid(self) -> None:
        errors = validate_config(CacheConfig(default_ttl=timedelta(0)))
        assert errors == ["Cache TTL must be greater than 0"]

    def test_negative_operation_ttl_is_invalid(self) -> None:
        errors = validate_config(CacheConfig(operation_ttls={"A": timedelta(hours=-1)}))
        assert errors == ["TTL for A cannot be negative"]

    @pytest.mark.parametrize("value", ["6:00", "0600", "06:0", "noon"])
    def test_time_format(self, value: str) -> None:
        config = CacheConfig(scheduled_refresh=ScheduledRefreshConfig(time=value))
        assert "Scheduled refresh time must be in HH:MM format" in validate_config(config)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "99:99"])
    def test_time_range(self, value: str) -> None:
        config = CacheConfig(scheduled_refresh=ScheduledRefreshConfig(time=value))
        assert "Scheduled refresh time must be a valid time" in validate_config(config)

    def test_unknown_timezone(self) -> None:
        config = CacheConfig(scheduled_refresh=ScheduledRefreshConfig(timezone="Mars/Olympus_Mons"))
        assert validate_config(config) == ["Unknown timezone: Mars/Olympus_Mons"]
