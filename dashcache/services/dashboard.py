"""Dashboard metric queries against the analytics warehouse."""

from __future__ import annotations

import logging
from typing import Any

from ..models import CacheService
from .operation_service import OperationService

logger = logging.getLogger(__name__)

QUARTERLY_METRICS_QUERY = """
query GetQuarterlyMetrics {
  quarterlyMetrics {
    quarter
    year
    quarterLabel
    brands { count qoqGrowth qoqGrowthPercent }
    locations { count qoqGrowth qoqGrowthPercent }
    orders { count qoqGrowth qoqGrowthPercent }
    totalRevenue { amount qoqGrowth qoqGrowthPercent }
  }
}
""".strip()

DASHBOARD_WIDGETS_QUERY = """
query GetDashboardWidgets {
  dashboardWidgets {
    id
    name
    layout
    totalOrders
    totalVisits
    lastOrderDate
  }
}
""".strip()

PLAYER_ANALYTICS_QUERY = """
query GetPlayerAnalytics {
  playerAnalytics {
    totalPlayers
    activePlayers
    newPlayers
    retentionRate
  }
}
""".strip()

DASHBOARD_QUERIES: dict[str, str] = {
    "GetQuarterlyMetrics": QUARTERLY_METRICS_QUERY,
    "GetDashboardWidgets": DASHBOARD_WIDGETS_QUERY,
    "GetPlayerAnalytics": PLAYER_ANALYTICS_QUERY,
}

DASHBOARD_OPERATIONS = tuple(DASHBOARD_QUERIES)


class DashboardService:
    """Reads dashboard metrics through the operation cache."""

    service = CacheService.WAREHOUSE

    def __init__(self, operation_service: OperationService) -> None:
        self.operation_service = operation_service

    async def get_quarterly_metrics(self) -> Any:
        return await self.operation_service.query(self.service, QUARTERLY_METRICS_QUERY)

    async def get_dashboard_widgets(self) -> Any:
        return await self.operation_service.query(self.service, DASHBOARD_WIDGETS_QUERY)

    async def get_player_analytics(self) -> Any:
        return await self.operation_service.query(self.service, PLAYER_ANALYTICS_QUERY)

    async def refresh_all_dashboard_data(self) -> dict[str, Any]:
        """Clear every dashboard operation and fetch them again in parallel."""
        self.operation_service.clear_operations(self.service, DASHBOARD_OPERATIONS)
        return await self.operation_service.prefetch(
            self.service,
            {operation: (query, None) for operation, query in DASHBOARD_QUERIES.items()},
        )
