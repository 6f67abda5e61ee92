"""Configuration module for dashcache.

Provides the persisted cache policy (CacheConfig/ConfigStore) and the daemon
settings loaded from YAML and environment variables.

Public Interface:
    - CacheConfig: Cache policy model
    - ScheduledRefreshConfig: Daily refresh settings
    - ConfigStore: Durable config read/write with default merging
    - validate_config: Check a config before saving
    - DashcacheSettings: Daemon settings model
    - load_config: Load daemon settings
    - read_settings_file: Read the YAML settings file
"""

from .cache_config import CONFIG_KEY
from .cache_config import NEVER_CACHED_OPERATIONS
from .cache_config import CacheConfig
from .cache_config import ConfigStore
from .cache_config import ScheduledRefreshConfig
from .cache_config import parse_scheduled_time
from .cache_config import validate_config
from .loader import load_config
from .loader import read_settings_file
from .settings import DashcacheSettings

__all__ = [
    "CONFIG_KEY",
    "NEVER_CACHED_OPERATIONS",
    "CacheConfig",
    "ConfigStore",
    "ScheduledRefreshConfig",
    "parse_scheduled_time",
    "validate_config",
    "DashcacheSettings",
    "load_config",
    "read_settings_file",
]
