"""Configuration management for Take Home.

Machine-specific settings live in settings.json:
   - tax_year: year calculations default to
   - remote_url: base URL of the rule-data service (unset = remote tier off)
   - fetch_timeout: seconds before a remote fetch is abandoned
   - cache_ttl_hours: how long a fetched snapshot stays valid in the cache

Config directory resolution:
1. TAKE_HOME_CONFIG_PATH environment variable (if set)
2. ~/.config/take-home/ (XDG_CONFIG_HOME fallback)

Cache path follows the XDG spec:
- Cache: XDG_CACHE_HOME/take-home/ or ~/.cache/take-home/
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

APP_NAME = "take-home"
SETTINGS_FILENAME = "settings.json"
RULES_CACHE_DIRNAME = "tax-data"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s: %(message)s"

DEFAULT_SETTINGS = {
    "tax_year": 2024,
    "remote_url": None,
    "fetch_timeout": 10,
    "cache_ttl_hours": 168,
}


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. TAKE_HOME_CONFIG_PATH environment variable
    2. ~/.config/take-home/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("TAKE_HOME_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value, falling back to the built-in default, then `default`."""
    settings = load_settings()
    if key in settings:
        return settings[key]
    if DEFAULT_SETTINGS.get(key) is not None:
        return DEFAULT_SETTINGS[key]
    return default


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json."""
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def unset_setting(key: str) -> bool:
    """Remove a setting. Returns False if it was not set."""
    settings = load_settings()
    if key not in settings:
        return False
    del settings[key]
    save_settings(settings)
    return True


def get_tax_year() -> int:
    return int(get_setting("tax_year"))


def get_remote_url() -> Optional[str]:
    url = get_setting("remote_url")
    return url.rstrip("/") if url else None


def get_fetch_timeout() -> float:
    return float(get_setting("fetch_timeout"))


def get_cache_ttl_hours() -> float:
    return float(get_setting("cache_ttl_hours"))


# =============================================================================
# XDG path helpers
# =============================================================================

def get_cache_path() -> Path:
    """Get the cache directory path (XDG_CACHE_HOME/take-home/), created if missing."""
    xdg_cache_home = os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache")
    cache_path = Path(xdg_cache_home) / APP_NAME
    cache_path.mkdir(parents=True, exist_ok=True)
    return cache_path


def get_rules_cache_path() -> Path:
    """Directory holding cached rule-data snapshots, created if missing."""
    path = get_cache_path() / RULES_CACHE_DIRNAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(default_level: str = "WARNING") -> None:
    """Configure root logging from the LOG_LEVEL environment variable."""
    level_name = os.environ.get("LOG_LEVEL", default_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
