"""Service group catalog.

Groups are a static, read-only catalog defined at import time. They declare
the full universe of known operations (used by the status view) and the
unit of bulk refresh/clear actions. Every operation in a group lives on the
group's service.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import UnknownServiceGroupError
from ..models import CacheService


@dataclass(frozen=True)
class ServiceGroup:
    """Named, ordered set of operations refreshed and cleared together."""

    name: str
    display_name: str
    operations: tuple[str, ...]
    service: CacheService = CacheService.WAREHOUSE


SERVICE_GROUPS: tuple[ServiceGroup, ...] = (
    ServiceGroup(
        name="dashboard",
        display_name="Dashboard Analytics",
        operations=("GetQuarterlyMetrics", "GetDashboardWidgets", "GetPlayerAnalytics"),
        service=CacheService.WAREHOUSE,
    ),
    ServiceGroup(
        name="menus",
        display_name="Menu Settings",
        operations=("MenuSettingsHybrid",),
        service=CacheService.API,
    ),
    ServiceGroup(
        name="users",
        display_name="Warehouse Users",
        operations=("WarehouseUsers",),
        service=CacheService.WAREHOUSE,
    ),
)


class ServiceGroupCatalog:
    """Lookup over a fixed list of service groups."""

    def __init__(self, groups: tuple[ServiceGroup, ...] | list[ServiceGroup] = SERVICE_GROUPS) -> None:
        self._groups = tuple(groups)
        self._by_name = {group.name: group for group in self._groups}

    def list(self) -> list[ServiceGroup]:
        return list(self._groups)

    def get(self, name: str) -> ServiceGroup:
        """Get a group by exact name.

        Raises:
            UnknownServiceGroupError: If no group has this name
        """
        group = self._by_name.get(name)
        if group is None:
            raise UnknownServiceGroupError(name)
        return group

    def all_operations(self) -> list[str]:
        """Every operation declared across all groups, in declaration order, without duplicates."""
        seen: dict[str, None] = {}
        for group in self._groups:
            for operation in group.operations:
                seen.setdefault(operation, None)
        return list(seen)

    def group_for(self, operation: str) -> ServiceGroup | None:
        """First group declaring the operation, if any."""
        for group in self._groups:
            if operation in group.operations:
                return group
        return None

    def service_for(self, operation: str) -> CacheService:
        """Service an operation lives on (warehouse for operations outside the catalog)."""
        group = self.group_for(operation)
        return group.service if group else CacheService.WAREHOUSE
