"""Cache models for operation-level caching.

This module contains all data models for cache management including:
- Persisted entry records (one per cached operation)
- Status models derived from entries and configuration
- Result models returned by cache actions
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from enum import Enum
from typing import Any

from pydantic import Field

from .base import CamelCaseModel


class CacheService(str, Enum):
    """Remote back-end an operation belongs to."""

    WAREHOUSE = "warehouse"
    API = "api"


def to_minutes(value: timedelta) -> int:
    """Round a duration to whole minutes for status display."""
    return round(value.total_seconds() / 60)


# =============================================================================
# Persisted Models
# =============================================================================


@dataclass
class CacheEntry:
    """Timestamped result of one operation, as stored in the substrate."""

    data: Any
    timestamp: datetime
    ttl: timedelta
    operation: str
    service: CacheService

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "ttl": self.ttl.total_seconds(),
            "operation": self.operation,
            "service": self.service.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CacheEntry:
        """Load from dictionary. Naive timestamps are taken as UTC."""
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        return cls(
            data=data["data"],
            timestamp=timestamp,
            ttl=timedelta(seconds=float(data["ttl"])),
            operation=data["operation"],
            service=CacheService(data["service"]),
        )

    def age(self, now: datetime) -> timedelta:
        """Time elapsed since the entry was written."""
        return now - self.timestamp

    def is_expired(self, now: datetime) -> bool:
        """Whether the entry is older than its TTL (an entry exactly at TTL is valid)."""
        return self.age(now) > self.ttl


# =============================================================================
# Status Models
# =============================================================================


class OperationCacheStatus(CamelCaseModel):
    """Stored-entry status for one operation. Durations are whole minutes."""

    operation_name: str = Field(
        ...,
        description="Operation name",
    )
    exists: bool = Field(
        ...,
        description="Whether an entry is stored for the operation",
    )
    service: CacheService | None = Field(
        None,
        description="Service namespace the entry was stored under",
    )
    age: int | None = Field(
        None,
        description="Minutes since the entry was written",
    )
    ttl: int | None = Field(
        None,
        description="Entry TTL in minutes",
    )
    is_expired: bool | None = Field(
        None,
        description="Whether the entry is older than its TTL",
    )
    expires_in: int | None = Field(
        None,
        description="Minutes until expiry (negative once expired)",
    )
    error: str | None = Field(
        None,
        description="Error reading the entry, if any",
    )


class CacheOperationStatus(CamelCaseModel):
    """One row of the status view, present for every catalogued operation."""

    operation: str = Field(
        ...,
        description="Operation name",
    )
    display_name: str | None = Field(
        None,
        description="Display name of the service group the operation belongs to",
    )
    is_cached: bool = Field(
        ...,
        description="Whether a fresh entry is stored",
    )
    is_stale: bool = Field(
        ...,
        description="Whether the stored entry has expired",
    )
    age: int = Field(
        0,
        description="Minutes since the entry was written (0 when not cached)",
    )
    ttl: int = Field(
        0,
        description="TTL in minutes",
    )


class CacheStatusResponse(CamelCaseModel):
    """Complete status view over all catalogued operations."""

    enabled: bool = Field(
        ...,
        description="Whether caching is enabled",
    )
    message: str | None = Field(
        None,
        description="Optional human-readable note",
    )
    data: list[CacheOperationStatus] = Field(
        default_factory=list,
        description="One row per catalogued operation",
    )


class ScheduledRefreshInfo(CamelCaseModel):
    """Next scheduled refresh. Only `enabled` is set when scheduling is off."""

    enabled: bool = Field(
        ...,
        description="Whether scheduled refresh is enabled",
    )
    scheduled: bool | None = Field(
        None,
        description="Whether a next refresh is scheduled",
    )
    scheduled_time: str | None = Field(
        None,
        description="Configured local time of day (HH:MM)",
    )
    timezone: str | None = Field(
        None,
        description="Configured timezone (display only)",
    )
    next_refresh: datetime | None = Field(
        None,
        description="Next refresh instant in local wall-clock time",
    )


class OperationCacheContents(CamelCaseModel):
    """Stored entry for one operation, including its data."""

    operation: str = Field(..., description="Operation name")
    service: CacheService = Field(..., description="Service namespace")
    key: str = Field(..., description="Substrate key")
    data: Any = Field(None, description="Cached data")
    timestamp: datetime = Field(..., description="When the entry was written")
    age: int = Field(..., description="Minutes since the entry was written")
    ttl: int = Field(..., description="Entry TTL in minutes")
    is_expired: bool = Field(..., description="Whether the entry is older than its TTL")
    expires_in: int = Field(..., description="Minutes until expiry")


# =============================================================================
# Action Results
# =============================================================================


class ActionResult(CamelCaseModel):
    """Outcome of a cache action. Actions report failure here instead of raising."""

    success: bool = Field(
        ...,
        description="Whether the action succeeded",
    )
    action: str = Field(
        ...,
        description="Action performed (e.g. 'refresh_all', 'clear_group')",
    )
    target: str | None = Field(
        None,
        description="Operation or group the action targeted",
    )
    error: str | None = Field(
        None,
        description="Error details if the action failed",
    )
    error_code: str | None = Field(
        None,
        description="Stable error code (e.g. 'unknown_service_group') when the failure has a known cause",
    )
