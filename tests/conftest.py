"""
Shared pytest fixtures for dashcache test suite.

Provides fixtures for:
- Temporary storage directories
- A controllable clock
- In-memory substrate, config store and TTL cache
- A fake GraphQL backend served through httpx.MockTransport
- A fully wired cache runtime
"""

import json
import tempfile
from collections.abc import Generator
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from pathlib import Path

import httpx
import pytest

from dashcache.cache import DurableTTLCache
from dashcache.client import NormalizedCache
from dashcache.config import ConfigStore
from dashcache.config import DashcacheSettings
from dashcache.models import CacheService
from dashcache.runtime import CacheRuntime
from dashcache.runtime import build_runtime
from dashcache.storage import MemoryStore


class FakeClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeGraphQLServer:
    """Answers every named operation with a small payload, or an error when told to."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failing: set[str] = set()
        self.version = 1

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        operation = payload.get("operationName")
        self.calls.append(operation)

        if operation in self.failing:
            return httpx.Response(200, json={"errors": [{"message": f"{operation} unavailable"}]})

        return httpx.Response(200, json={"data": {"operation": operation, "version": self.version}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def temp_storage_dir() -> Generator[Path, None, None]:
    """Create temporary storage directory for tests.

    Automatically cleaned up after test completes.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_storage_env(temp_storage_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point DASHCACHE_HOME at a temporary directory.

    Returns:
        Path to temporary storage directory
    """
    monkeypatch.setenv("DASHCACHE_HOME", str(temp_storage_dir))
    for name in ("DASHCACHE_STORE_PATH", "DASHCACHE_PORT", "DASHCACHE_STATUS_POLL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    return temp_storage_dir


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2024-03-01 12:00 UTC."""
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def config_store(store: MemoryStore) -> ConfigStore:
    return ConfigStore(store)


@pytest.fixture
def normalized_caches() -> dict[CacheService, NormalizedCache]:
    return {service: NormalizedCache() for service in CacheService}


@pytest.fixture
def cache(
    store: MemoryStore,
    config_store: ConfigStore,
    normalized_caches: dict[CacheService, NormalizedCache],
    clock: FakeClock,
) -> DurableTTLCache:
    return DurableTTLCache(store, config_store, normalized_caches=normalized_caches, clock=clock)


@pytest.fixture
def graphql_server() -> FakeGraphQLServer:
    return FakeGraphQLServer()


@pytest.fixture
def settings() -> DashcacheSettings:
    """In-memory settings with no settle delay."""
    return DashcacheSettings(persistence=False, refresh_settle_seconds=0)


@pytest.fixture
def runtime(
    settings: DashcacheSettings,
    store: MemoryStore,
    graphql_server: FakeGraphQLServer,
    clock: FakeClock,
) -> CacheRuntime:
    """Fully wired runtime talking to the fake GraphQL backend.

    The mock transport holds no connections, so the clients need no closing.
    """
    built = build_runtime(settings, store=store, transport=graphql_server.transport())
    built.cache.clock = clock
    built.users_service.clock = clock
    built.menu_settings_service.clock = clock
    return built
