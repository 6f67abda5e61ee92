"""Domain services that keep a private copy of their operation's result.

These services sit on top of the operation cache and hold their own short
lived in-memory copy. Cache actions on their operation must clear both
layers, which is what DomainServiceStrategy does.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from typing import Any

from ..models import CacheService
from .operation_service import OperationService

logger = logging.getLogger(__name__)

WAREHOUSE_USERS_QUERY = """
query WarehouseUsers($page: Int, $pageSize: Int) {
  warehouseUsers(page: $page, pageSize: $pageSize) {
    users {
      id
      email
      firstName
      lastName
      dateJoined
      lastLogin
      isActive
      isSuperuser
    }
    total
  }
}
""".strip()

MENU_SETTINGS_HYBRID_QUERY = """
query MenuSettingsHybrid {
  menuSettings {
    id
    name
    slug
    updatedAt
    publishedAt
    numberOfLocations
    layout
    isOrderButtonEnabled
  }
  quarterlyMetrics {
    quarter
    year
    quarterLabel
  }
}
""".strip()


class CachedDomainService:
    """Base for services owning one operation and a private cached copy of it."""

    operation: str = ""
    service: CacheService = CacheService.WAREHOUSE
    query: str = ""
    private_ttl: timedelta = timedelta(minutes=5)

    def __init__(
        self,
        operation_service: OperationService,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.operation_service = operation_service
        self.clock = clock or (lambda: datetime.now(UTC))
        self._cached: Any | None = None
        self._fetched_at: datetime | None = None

    def variables(self) -> dict[str, Any] | None:
        return None

    def has_fresh_copy(self) -> bool:
        if self._cached is None or self._fetched_at is None:
            return False
        return self.clock() - self._fetched_at <= self.private_ttl

    async def fetch(self) -> Any:
        """Get the operation's data, preferring the private copy."""
        if self.has_fresh_copy():
            logger.debug(f"Serving private copy of {self.operation}")
            return self._cached

        data = await self.operation_service.query(self.service, self.query, self.variables())
        self._store(data)
        return data

    async def refresh(self) -> Any:
        """Fetch from the network and replace both cache layers.

        The private copy and the operation entry are only replaced when the
        fetch succeeds; a failed refresh leaves the previous data in place.
        """
        data = await self.operation_service.query(
            self.service,
            self.query,
            self.variables(),
            network_only=True,
        )
        self._store(data)
        logger.info(f"Refreshed {self.operation}")
        return data

    def clear_cache(self) -> None:
        self._cached = None
        self._fetched_at = None
        logger.info(f"Cleared private cache for {self.operation}")

    def _store(self, data: Any) -> None:
        self._cached = data
        self._fetched_at = self.clock()


class UsersService(CachedDomainService):
    """Warehouse user listing (first page)."""

    operation = "WarehouseUsers"
    service = CacheService.WAREHOUSE
    query = WAREHOUSE_USERS_QUERY

    def __init__(
        self,
        operation_service: OperationService,
        page_size: int = 50,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(operation_service, clock)
        self.page_size = page_size

    def variables(self) -> dict[str, Any]:
        return {"page": 1, "pageSize": self.page_size}

    async def get_users(self) -> Any:
        return await self.fetch()


class MenuSettingsService(CachedDomainService):
    """Menu settings from the application API combined with warehouse metrics."""

    operation = "MenuSettingsHybrid"
    service = CacheService.API
    query = MENU_SETTINGS_HYBRID_QUERY

    async def get_menu_settings(self) -> Any:
        return await self.fetch()
