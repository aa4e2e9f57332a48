"""
Shared test fixtures for the appmenu test suite.

Provides temporary application directories, history, settings, and
desktop files that use real file I/O (no mocking of the filesystem).
"""

import json
import sys
from pathlib import Path

import pytest
import toml
from loguru import logger


def write_desktop(app_dir: Path, entry_id: str, **keys) -> Path:
    """
    Write a .desktop file with the given [Desktop Entry] keys.

    Keyword names are used verbatim as keys, so pass NoDisplay="true"
    rather than no_display=True.
    """
    app_dir.mkdir(parents=True, exist_ok=True)
    lines = ["[Desktop Entry]", "Type=Application"]
    lines.extend(f"{key}={value}" for key, value in keys.items())
    path = app_dir / f"{entry_id}.desktop"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture(autouse=True)
def restore_logging():
    """appmenu.app.main() replaces the loguru sink; put a default one back afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def user_apps(tmp_path):
    """Highest-precedence application dir ($XDG_DATA_HOME/applications)."""
    path = tmp_path / "home" / ".local" / "share" / "applications"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def system_apps(tmp_path):
    """Lower-precedence application dir (an $XDG_DATA_DIRS entry)."""
    path = tmp_path / "usr" / "share" / "applications"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def xdg_env(tmp_path, user_apps, system_apps, monkeypatch):
    """Point every XDG variable at tmp_path and clear locale/terminal settings."""
    home = tmp_path / "home"
    env = {
        "HOME": str(home),
        "XDG_DATA_HOME": str(user_apps.parent),
        "XDG_DATA_DIRS": str(system_apps.parent),
        "XDG_CONFIG_HOME": str(home / ".config"),
        "XDG_CACHE_HOME": str(home / ".cache"),
        "TERMINAL": "xterm",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    for key in ("LC_ALL", "LC_MESSAGES", "LANG"):
        monkeypatch.delenv(key, raising=False)
    return env


@pytest.fixture
def tmp_history(tmp_path):
    """Create a real history JSON file with test counts."""
    history_path = tmp_path / "history.json"
    data = {
        "history": {
            "firefox": 0,
            "xterm -e htop": 2,
        }
    }
    history_path.write_text(json.dumps(data, indent=2))
    return history_path


@pytest.fixture
def tmp_settings(tmp_path):
    """Create a real settings TOML file with all sections."""
    settings_path = tmp_path / "settings.toml"
    data = {
        "selector": {"command": "rofi -dmenu -i"},
        "launcher": {"terminal": "foot"},
        "history": {"enabled": True, "path": ""},
        "cache": {"enabled": False, "path": ""},
        "search": {"fuzzy_threshold": 60},
    }
    settings_path.write_text(toml.dumps(data))
    return settings_path
