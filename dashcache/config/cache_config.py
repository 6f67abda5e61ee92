"""Cache configuration model and its durable store.

The configuration is a process-wide singleton persisted under one well-known
key of the key-value substrate. It is read fresh on every decision; there is
no long-lived in-memory copy of record.

Contract:
- Inputs: Serialized config blob in the substrate (possibly partial, legacy or corrupt)
- Outputs: Complete CacheConfig objects merged with built-in defaults
- Side Effects: Writes the config key on set()
"""

from __future__ import annotations

import json
import logging
import re
from datetime import timedelta
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..storage import KeyValueStore

logger = logging.getLogger(__name__)

CONFIG_KEY = "cacheConfig"
DEFAULT_STORAGE_PREFIX = "dashboard-query-cache"
DEFAULT_TTL = timedelta(hours=24)

# Operations whose data must always be fetched live. TTL 0 means "never cache".
NEVER_CACHED_OPERATIONS = ("GetWidget", "GetWidgets", "GetMenus", "GetUser")

_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


class ScheduledRefreshConfig(BaseModel):
    """Daily automatic refresh settings."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = Field(
        default=True,
        description="Whether the daily refresh runs",
    )
    time: str = Field(
        default="06:00",
        description="Local time of day in HH:MM",
    )
    timezone: str = Field(
        default="America/Los_Angeles",
        description="IANA timezone the refresh time is expressed in",
    )


class CacheConfig(BaseModel):
    """Complete cache configuration.

    Durations serialize as ISO 8601 and accept ISO 8601 strings or a number
    of seconds on input.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    default_ttl: timedelta = Field(
        default=DEFAULT_TTL,
        alias="defaultTTL",
        description="TTL for operations without an override",
    )
    enable_caching: bool = Field(
        default=True,
        alias="enableCaching",
        description="Master switch; when off entries are neither served nor stored",
    )
    scheduled_refresh: ScheduledRefreshConfig = Field(
        default_factory=ScheduledRefreshConfig,
        alias="scheduledRefresh",
    )
    storage_prefix: str = Field(
        default=DEFAULT_STORAGE_PREFIX,
        alias="storagePrefix",
        description="Namespace prefix for cache entry keys",
    )
    operation_ttls: dict[str, timedelta] = Field(
        default_factory=lambda: {name: timedelta(0) for name in NEVER_CACHED_OPERATIONS},
        alias="operationTTLs",
        description="Per-operation TTL overrides (0 = never cache)",
    )

    @classmethod
    def default(cls) -> CacheConfig:
        """Get the built-in default configuration."""
        return cls()

    def ttl_for(self, operation: str) -> timedelta:
        """Get the TTL that applies to an operation."""
        return self.operation_ttls.get(operation, self.default_ttl)


def parse_scheduled_time(value: str) -> tuple[int, int]:
    """Split an "HH:MM" string into hour and minute.

    Raises:
        ValueError: If the value is not two colon-separated integers
    """
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def validate_config(config: CacheConfig) -> list[str]:
    """Validate a configuration before it is saved.

    Args:
        config: Configuration to check

    Returns:
        List of human-readable problems (empty when valid)
    """
    errors: list[str] = []

    if config.default_ttl <= timedelta(0):
        errors.append("Cache TTL must be greater than 0")

    for operation, ttl in config.operation_ttls.items():
        if ttl < timedelta(0):
            errors.append(f"TTL for {operation} cannot be negative")

    time_value = config.scheduled_refresh.time
    if not _TIME_PATTERN.match(time_value):
        errors.append("Scheduled refresh time must be in HH:MM format")
    else:
        hours, minutes = parse_scheduled_time(time_value)
        if hours > 23 or minutes > 59:
            errors.append("Scheduled refresh time must be a valid time")

    try:
        ZoneInfo(config.scheduled_refresh.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"Unknown timezone: {config.scheduled_refresh.timezone}")

    return errors


class ConfigStore:
    """Reads and writes the cache configuration through the substrate.

    Every read merges the persisted blob over the built-in defaults, so
    partial or older shapes never drop a known operation. Failures never
    reach the caller: reads fall back to defaults, writes are logged.
    """

    def __init__(self, store: KeyValueStore, key: str = CONFIG_KEY) -> None:
        """Initialize config store.

        Args:
            store: Key-value substrate holding the config blob
            key: Well-known key of the config blob
        """
        self.store = store
        self.key = key

    def get(self) -> CacheConfig:
        """Load the current configuration.

        Returns:
            Persisted configuration merged with defaults, or the defaults
            when nothing usable is stored
        """
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            logger.warning(f"Error reading cache config, using defaults: {e}")
            return CacheConfig.default()

        if raw is None:
            return CacheConfig.default()

        try:
            return self._merge_with_defaults(json.loads(raw))
        except (ValueError, ConfigurationError) as e:
            logger.warning(f"Error reading cache config, using defaults: {e}")
            return CacheConfig.default()

    def set(self, config: CacheConfig) -> None:
        """Persist a configuration. Storage failures are logged, not raised."""
        try:
            self.store.set(self.key, config.model_dump_json(by_alias=True))
            logger.info(
                f"Cache configuration updated: default_ttl={config.default_ttl}, "
                f"enable_caching={config.enable_caching}, "
                f"operation_ttls={len(config.operation_ttls)}"
            )
        except Exception as e:
            logger.error(f"Error saving cache config: {e}")

    def get_ttl(self, operation: str) -> timedelta:
        """Get the TTL for an operation (override if present, else the default)."""
        return self.get().ttl_for(operation)

    def set_operation_ttl(self, operation: str, hours: float) -> None:
        """Set a per-operation TTL override.

        Args:
            operation: Operation name
            hours: TTL in hours (0 disables caching for the operation)
        """
        config = self.get()
        config.operation_ttls[operation] = timedelta(hours=hours)
        self.set(config)
        logger.info(f"Updated TTL for {operation}: {hours}h")

    def _merge_with_defaults(self, persisted: object) -> CacheConfig:
        """Overlay a persisted blob on the defaults.

        Raises:
            ConfigurationError: If the blob has a shape that cannot be merged
        """
        if not isinstance(persisted, dict):
            raise ConfigurationError(f"expected an object, got {type(persisted).__name__}")

        defaults = CacheConfig.default().model_dump(by_alias=True)
        data = dict(persisted)

        # Older blobs stored the default TTL as "ttl" in milliseconds
        if "defaultTTL" not in data and "ttl" in data:
            legacy_ttl = data.pop("ttl")
            if not isinstance(legacy_ttl, (int, float)):
                raise ConfigurationError(f"legacy ttl must be a number, got {legacy_ttl!r}")
            data["defaultTTL"] = legacy_ttl / 1000

        scheduled = data.pop("scheduledRefresh", None) or {}
        if not isinstance(scheduled, dict):
            raise ConfigurationError("scheduledRefresh must be an object")

        operation_ttls = self._parse_operation_ttls(data.pop("operationTTLs", None))

        merged = {**defaults, **data}
        merged["scheduledRefresh"] = {**defaults["scheduledRefresh"], **scheduled}
        merged["operationTTLs"] = {**defaults["operationTTLs"], **operation_ttls}
        try:
            return CacheConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"invalid cache config: {e}") from e

    def _parse_operation_ttls(self, value: object) -> dict:
        """Normalize the persisted operationTTLs field.

        Some blobs hold the mapping as a serialized JSON string; a string that
        does not parse to an object is treated as an empty mapping.
        """
        if value is None:
            return {}
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError as e:
                logger.warning(f"Error parsing operationTTLs string, ignoring overrides: {e}")
                return {}
        if not isinstance(value, dict):
            logger.warning(f"operationTTLs is not a mapping, ignoring overrides: {value!r}")
            return {}
        return value
