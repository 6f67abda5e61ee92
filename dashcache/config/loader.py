"""Settings loading for the dashcache daemon.

Settings are layered, strongest first: DASHCACHE_* environment variables
(and .env), the optional YAML file at $DASHCACHE_HOME/daemon.yaml, then
the defaults on DashcacheSettings. Nothing is written; a missing file
simply contributes no values.

Contract:
- Inputs: Environment variables, optional YAML file
- Outputs: DashcacheSettings objects
- Side Effects: None
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from .settings import DashcacheSettings

logger = logging.getLogger(__name__)


def read_settings_file(path: Path) -> dict[str, Any]:
    """Read a YAML settings file.

    Args:
        path: File to read

    Returns:
        The file's top-level mapping, or an empty dict when the file is
        missing, unreadable, not valid YAML or not a mapping
    """
    if not path.exists():
        logger.debug(f"No settings file at {path}")
        return {}

    try:
        values = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring settings file {path}: {e}")
        return {}

    if values is None:
        return {}
    if not isinstance(values, dict):
        logger.warning(f"Ignoring settings file {path}: expected a mapping, got {type(values).__name__}")
        return {}
    return values


def load_config(config_path: Path | None = None) -> DashcacheSettings:
    """Load daemon settings from the environment and the YAML file.

    Args:
        config_path: Settings file (default: daemon.yaml under the home directory)

    Returns:
        Validated daemon settings

    Example:
        >>> settings = load_config()
        >>> assert settings.port > 0
    """
    from_env = DashcacheSettings()
    path = config_path or from_env.config_path

    # Keys the environment sets are left to the environment
    file_values = {
        key: value for key, value in read_settings_file(path).items() if key not in from_env.model_fields_set
    }
    settings = DashcacheSettings(**file_values)

    logger.info(
        f"Daemon configuration loaded: host={settings.host}, port={settings.port}, "
        f"store={settings.resolved_store_path if settings.persistence else 'memory'}"
    )
    return settings
