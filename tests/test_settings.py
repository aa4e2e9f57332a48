"""
Tests for settings loading, deep merge logic and XDG paths.

Uses real TOML files on disk (no mocking).
"""

from pathlib import Path

import pytest

from appmenu.errors import ConfigError
from appmenu.utils.helpers import (
    _deep_merge,
    default_cache_path,
    default_history_path,
    default_settings_path,
    load_settings,
    split_command,
)


class TestDeepMerge:
    """Test the _deep_merge function directly."""

    def test_override_replaces_flat_key(self):
        result = _deep_merge({"a": 1, "b": 2}, {"b": 99})
        assert result == {"a": 1, "b": 99}

    def test_override_adds_new_key(self):
        result = _deep_merge({"a": 1}, {"b": 2})
        assert result == {"a": 1, "b": 2}

    def test_nested_dicts_are_merged(self):
        base = {"section": {"a": 1, "b": 2}}
        override = {"section": {"b": 99, "c": 3}}
        assert _deep_merge(base, override) == {"section": {"a": 1, "b": 99, "c": 3}}

    def test_base_is_not_mutated(self):
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": {"x": 2}})
        assert base["a"]["x"] == 1


class TestLoadSettings:
    """Test load_settings with real TOML files."""

    def test_returns_defaults_when_file_missing(self, xdg_env):
        settings = load_settings()
        assert settings["selector"]["command"] == "dmenu -i"
        assert settings["history"]["enabled"] is True
        assert settings["search"]["fuzzy_threshold"] == 50

    def test_reads_default_location(self, xdg_env):
        path = Path(xdg_env["XDG_CONFIG_HOME"]) / "appmenu" / "settings.toml"
        path.parent.mkdir(parents=True)
        path.write_text('[selector]\ncommand = "fzf"\n')
        assert load_settings()["selector"]["command"] == "fzf"

    def test_loaded_values_override_defaults(self, tmp_settings):
        settings = load_settings(tmp_settings)
        assert settings["selector"]["command"] == "rofi -dmenu -i"
        assert settings["launcher"]["terminal"] == "foot"
        assert settings["cache"]["enabled"] is False
        assert settings["search"]["fuzzy_threshold"] == 60

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("[history]\nenabled = false\n")
        settings = load_settings(path)
        assert settings["history"]["enabled"] is False
        assert settings["history"]["path"] == ""
        assert settings["selector"]["command"] == "dmenu -i"

    def test_malformed_file_is_an_error(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("[selector\ncommand = ")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_section_must_be_table(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text('selector = "dmenu"\n')
        with pytest.raises(ConfigError, match="must be a table"):
            load_settings(path)

    def test_string_boolean_is_an_error(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text('[history]\nenabled = "false"\n')
        with pytest.raises(ConfigError, match=r"\[history\] enabled .* must be true or false"):
            load_settings(path)

    def test_number_path_is_an_error(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("[history]\npath = 5\n")
        with pytest.raises(ConfigError, match="must be a string"):
            load_settings(path)

    def test_text_threshold_is_an_error(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text('[search]\nfuzzy_threshold = "high"\n')
        with pytest.raises(ConfigError, match="must be a number"):
            load_settings(path)

    def test_out_of_range_threshold_is_an_error(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("[search]\nfuzzy_threshold = 150\n")
        with pytest.raises(ConfigError, match="between 0 and 100"):
            load_settings(path)

    def test_float_threshold_is_accepted(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("[search]\nfuzzy_threshold = 72.5\n")
        assert load_settings(path)["search"]["fuzzy_threshold"] == 72.5

    def test_unknown_keys_are_kept(self, tmp_path):
        path = tmp_path / "settings.toml"
        path.write_text("[selector]\nprompt = 3\n")
        assert load_settings(path)["selector"]["prompt"] == 3

    def test_explicit_missing_file_is_an_error(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.toml")


class TestXdgPaths:
    """Test default file locations."""

    def test_paths_follow_environment(self):
        env = {"HOME": "/h", "XDG_CONFIG_HOME": "/cfg", "XDG_DATA_HOME": "/data", "XDG_CACHE_HOME": "/cache"}
        assert default_settings_path(env) == Path("/cfg/appmenu/settings.toml")
        assert default_history_path(env) == Path("/data/appmenu/history.json")
        assert default_cache_path(env) == Path("/cache/appmenu/entries.json")

    def test_paths_default_under_home(self):
        env = {"HOME": "/h"}
        assert default_settings_path(env) == Path("/h/.config/appmenu/settings.toml")
        assert default_history_path(env) == Path("/h/.local/share/appmenu/history.json")
        assert default_cache_path(env) == Path("/h/.cache/appmenu/entries.json")


class TestSplitCommand:
    """Test command-string splitting."""

    def test_splits_words(self):
        assert split_command("rofi -dmenu -p 'run:'", "selector") == ["rofi", "-dmenu", "-p", "run:"]

    def test_empty_is_an_error(self):
        with pytest.raises(ConfigError, match="empty"):
            split_command("   ", "selector")

    def test_non_string_is_an_error(self):
        with pytest.raises(ConfigError):
            split_command(42, "selector")
