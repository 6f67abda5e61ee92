"""Settings models for the dashcache daemon.

This module defines the process-level configuration: where the service
listens, where cached data lives, which remote endpoints are queried and how
often status is polled. The cache policy itself (TTLs, scheduled refresh) is
the persisted CacheConfig, not part of these settings.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class DashcacheSettings(BaseSettings):
    """Configuration for the dashcache daemon.

    Attributes:
        host: Listen address (default: 127.0.0.1)
        port: Listen port (default: 8430)
        log_level: Logging level (default: info)
        home: Directory holding daemon.yaml and the store file (default: .dashcache)
        store_path: Durable store file (default: <home>/store.json)
        persistence: Persist cache entries to disk (default: True)
        warehouse_url: GraphQL endpoint of the analytics warehouse
        api_url: GraphQL endpoint of the application API
        api_key: API key sent to both endpoints
        request_timeout_seconds: Timeout for remote queries
        status_poll_seconds: Interval of the periodic status recomputation
        refresh_settle_seconds: Wait after a full refresh before status is recomputed

    Example:
        >>> settings = DashcacheSettings()
        >>> assert settings.host == "127.0.0.1"
        >>> assert settings.status_poll_seconds == 60
    """

    model_config = SettingsConfigDict(
        env_prefix="DASHCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8430
    log_level: str = "info"

    home: Path = Field(default=Path(".dashcache"), validate_default=True)
    store_path: Path | None = None
    persistence: bool = True

    warehouse_url: str = "http://localhost:4000/graphql"
    api_url: str = "http://localhost:4001/graphql"
    api_key: str | None = None
    request_timeout_seconds: float = 30.0

    status_poll_seconds: int = 60
    refresh_settle_seconds: float = 2.0

    @field_validator("home", "store_path")
    @classmethod
    def expand_and_resolve_path(cls, v: Path | None) -> Path | None:
        """Expand ~ and resolve to an absolute path (None keeps the default location)."""
        if v is None:
            return None
        return v.expanduser().resolve()

    @property
    def config_path(self) -> Path:
        """YAML settings file read by load_config()."""
        return self.home / "daemon.yaml"

    @property
    def resolved_store_path(self) -> Path:
        return self.store_path or self.home / "store.json"
