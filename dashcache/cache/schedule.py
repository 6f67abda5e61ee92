"""Next-occurrence calculation for the daily scheduled refresh.

The comparison is done in local wall-clock terms: "today at HH:MM" is built
from the given instant and advanced one calendar day if it is not strictly
in the future. The configured timezone is reported alongside but is not
used in the arithmetic.
"""

from __future__ import annotations

import logging
from datetime import datetime
from datetime import timedelta

from ..config import CacheConfig
from ..config import parse_scheduled_time
from ..models import ScheduledRefreshInfo

logger = logging.getLogger(__name__)


def next_occurrence(config: CacheConfig, now: datetime | None = None) -> ScheduledRefreshInfo:
    """Compute the next scheduled refresh.

    Args:
        config: Cache configuration
        now: Current instant (default: naive local now)

    Returns:
        ScheduledRefreshInfo with only enabled=False when scheduling is off;
        otherwise next_refresh is strictly after now

    Example:
        >>> config = CacheConfig()
        >>> info = next_occurrence(config, datetime(2024, 3, 1, 5, 0))
        >>> info.next_refresh
        datetime.datetime(2024, 3, 1, 6, 0)
    """
    scheduled = config.scheduled_refresh
    if not scheduled.enabled:
        return ScheduledRefreshInfo(enabled=False)

    if now is None:
        now = datetime.now()

    try:
        hours, minutes = parse_scheduled_time(scheduled.time)
        next_refresh = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
    except ValueError as e:
        logger.warning(f"Invalid scheduled refresh time {scheduled.time!r}: {e}")
        return ScheduledRefreshInfo(
            enabled=True,
            scheduled=False,
            scheduled_time=scheduled.time,
            timezone=scheduled.timezone,
        )

    if next_refresh <= now:
        next_refresh += timedelta(days=1)

    return ScheduledRefreshInfo(
        enabled=True,
        scheduled=True,
        scheduled_time=scheduled.time,
        timezone=scheduled.timezone,
        next_refresh=next_refresh,
    )
