"""
Helper utilities for the appmenu launcher.

Provides common functions used across multiple modules:
- XDG base directory resolution
- Settings loading
- Command-string splitting
"""

import os
import shlex
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import toml
from loguru import logger

from appmenu.errors import ConfigError

APP_NAME = "appmenu"


def _env(environ: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _home(environ: Mapping[str, str]) -> Path:
    home = environ.get("HOME")
    return Path(home) if home else Path.home()


def xdg_data_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """$XDG_DATA_HOME, defaulting to ~/.local/share."""
    env = _env(environ)
    value = env.get("XDG_DATA_HOME")
    return Path(value) if value else _home(env) / ".local" / "share"


def xdg_config_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """$XDG_CONFIG_HOME, defaulting to ~/.config."""
    env = _env(environ)
    value = env.get("XDG_CONFIG_HOME")
    return Path(value) if value else _home(env) / ".config"


def xdg_cache_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """$XDG_CACHE_HOME, defaulting to ~/.cache."""
    env = _env(environ)
    value = env.get("XDG_CACHE_HOME")
    return Path(value) if value else _home(env) / ".cache"


def default_settings_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    return xdg_config_home(environ) / APP_NAME / "settings.toml"


def default_history_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    return xdg_data_home(environ) / APP_NAME / "history.json"


def default_cache_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    return xdg_cache_home(environ) / APP_NAME / "entries.json"


def default_settings() -> Dict[str, Any]:
    """
    Built-in settings, used for any key the settings file leaves out.

    Empty strings mean "derive from the environment": the terminal falls
    back to $TERMINAL, and file paths fall back to the XDG locations.
    """
    return {
        "selector": {
            "command": "dmenu -i",
        },
        "launcher": {
            "terminal": "",
        },
        "history": {
            "enabled": True,
            "path": "",
        },
        "cache": {
            "enabled": True,
            "path": "",
        },
        "search": {
            "fuzzy_threshold": 50,
        },
    }


def load_settings(settings_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load launcher settings from TOML file.

    Args:
        settings_path: Explicit settings file. When None, the XDG config
            location is used and a missing file is not an error.

    Returns:
        Dictionary containing settings with defaults applied

    Raises:
        ConfigError: The file exists but cannot be read or parsed, or an
            explicitly requested file does not exist.

    Example settings structure:
        [selector]
        command = "rofi -dmenu -i"

        [launcher]
        terminal = "foot"

        [history]
        enabled = true
    """
    defaults = default_settings()
    explicit = settings_path is not None
    path = Path(settings_path) if explicit else default_settings_path()

    if not path.exists():
        if explicit:
            raise ConfigError(f"Settings file not found: {path}")
        logger.debug(f"Settings file not found at {path}, using defaults")
        return defaults

    try:
        loaded = toml.load(path)
    except (OSError, toml.TomlDecodeError) as e:
        raise ConfigError(f"Could not load settings from {path}: {e}") from e

    for section, value in loaded.items():
        if section in defaults and not isinstance(value, dict):
            raise ConfigError(f"Settings section [{section}] in {path} must be a table")

    settings = _deep_merge(defaults, loaded)
    _check_types(settings, defaults, path)
    logger.debug(f"Loaded settings from {path}")
    return settings


def _check_types(settings: Dict, defaults: Dict, path: Path) -> None:
    """Each known key must hold the same kind of value as its default."""
    for section, keys in defaults.items():
        for key, default in keys.items():
            value = settings[section][key]
            where = f"[{section}] {key} in {path}"
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ConfigError(f"{where} must be true or false, not {value!r}")
            elif isinstance(default, int):
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigError(f"{where} must be a number, not {value!r}")
                # fuzzy_threshold is the only number and is a rapidfuzz score
                if not 0 <= value <= 100:
                    raise ConfigError(f"{where} must be between 0 and 100, not {value!r}")
            elif not isinstance(value, str):
                raise ConfigError(f"{where} must be a string, not {value!r}")


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary with defaults
        override: Dictionary with overrides

    Returns:
        Merged dictionary (override takes precedence)
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def split_command(command: str, what: str) -> list[str]:
    """
    Split a configured command line into argv using shell-word rules.

    Args:
        command: Command string, e.g. "rofi -dmenu -p 'run:'"
        what: Setting name used in the error message

    Raises:
        ConfigError: Unbalanced quoting or an empty command
    """
    if not isinstance(command, str):
        raise ConfigError(f"{what} must be a string, got {type(command).__name__}")
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise ConfigError(f"Malformed {what} command {command!r}: {e}") from e
    if not argv:
        raise ConfigError(f"{what} command is empty")
    return argv
