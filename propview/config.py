"""Unified configuration loader for propview."""

import yaml
from pathlib import Path
from typing import Any

from .logging_utils import log_warning


DEFAULT_CONFIG = {
    "callsign": "",
    "grid": "",            # Home locator, e.g. CM98
    "worker_timeout": 30,  # Seconds before falling back to local computation
    "max_workers": 1,
    "field_zoom_max": 3,   # Zoom at or below this draws fields, above it squares
    "terminator_step": 2,  # Terminator sampling step in degrees of longitude
    "recent_spots_limit": 100,
    "log_level": "INFO",
}

LOCAL_CONFIG = Path("local") / "config" / "config.yaml"
USER_CONFIG = Path.home() / ".config" / "propview" / "config.yaml"


def config_search_paths(config_path: Path | None = None) -> list[Path]:
    """Paths load_config() tries, in order."""
    search_paths = []
    if config_path:
        search_paths.append(Path(config_path))
    # Local config (gitignored, relative to the working directory)
    search_paths.append(Path.cwd() / LOCAL_CONFIG)
    # XDG config
    search_paths.append(USER_CONFIG)
    return search_paths


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file with defaults.

    Searches for config in:
    1. Provided path
    2. local/config/config.yaml under the working directory
    3. ~/.config/propview/config.yaml (XDG standard)
    4. Falls back to defaults

    A file that exists but cannot be read or parsed is logged and the
    search moves on to the next path.

    Args:
        config_path: Optional path to config file

    Returns:
        Dict with configuration values
    """
    config = DEFAULT_CONFIG.copy()

    for path in config_search_paths(config_path):
        if not path.exists():
            continue
        try:
            with open(path) as f:
                user_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            log_warning("config_load_failed", path=str(path), error=str(e))
            continue
        if user_config and not isinstance(user_config, dict):
            log_warning("config_load_failed", path=str(path), error="top level is not a mapping")
            continue
        if user_config:
            config.update(user_config)
        return config

    return config


def save_config(config: dict[str, Any], config_path: Path | None = None) -> Path:
    """Save configuration to YAML file.

    Args:
        config: Configuration dict to save
        config_path: Optional path to save to (defaults to local/config/config.yaml)

    Returns:
        Path written
    """
    if config_path is None:
        config_path = Path.cwd() / LOCAL_CONFIG
    config_path = Path(config_path)

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    return config_path
