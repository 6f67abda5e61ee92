"""Services that fetch operation data through the cache.

Public Interface:
    - OperationService: Query execution with operation-level caching
    - DashboardService: Dashboard metric operations
    - CachedDomainService: Base for services with a private cached copy
    - UsersService: Warehouse users (private copy)
    - MenuSettingsService: Menu settings (private copy)
"""

from .dashboard import DASHBOARD_OPERATIONS
from .dashboard import DASHBOARD_QUERIES
from .dashboard import DashboardService
from .domain import CachedDomainService
from .domain import MenuSettingsService
from .domain import UsersService
from .operation_service import OperationService

__all__ = [
    "DASHBOARD_OPERATIONS",
    "DASHBOARD_QUERIES",
    "DashboardService",
    "CachedDomainService",
    "MenuSettingsService",
    "UsersService",
    "OperationService",
]
