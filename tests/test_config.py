"""
Unit tests for luau/config.py - settings loading.
"""
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from luau.config import MercurySettings, load_settings
from luau.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run in an empty directory with an empty home."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestDefaults:
    """Tests for default settings."""

    def test_defaults(self):
        settings = MercurySettings()
        assert settings.indent == "\t"
        assert settings.call_parentheses == "elide"
        assert settings.max_iterations == 64
        assert settings.seed is None

    def test_no_files_gives_defaults(self, isolated):
        assert load_settings() == MercurySettings()


class TestLoading:
    """Tests for reading settings files."""

    def test_working_directory_file(self, isolated):
        (isolated / "mercury.json").write_text(json.dumps({"indent": "  ", "seed": 5}))
        settings = load_settings()
        assert settings.indent == "  "
        assert settings.seed == 5

    def test_home_file(self, isolated):
        folder = isolated / "home" / ".mercury"
        folder.mkdir()
        (folder / "mercury.json").write_text(json.dumps({"call_parentheses": "keep"}))
        assert load_settings().call_parentheses == "keep"

    def test_working_directory_wins(self, isolated):
        folder = isolated / "home" / ".mercury"
        folder.mkdir()
        (folder / "mercury.json").write_text(json.dumps({"max_iterations": 5}))
        (isolated / "mercury.json").write_text(json.dumps({"max_iterations": 9}))
        assert load_settings().max_iterations == 9

    def test_explicit_path(self, isolated):
        path = isolated / "custom.json"
        path.write_text(json.dumps({"max_iterations": 3}))
        assert load_settings(str(path)).max_iterations == 3


class TestErrors:
    """Tests for invalid settings."""

    def test_missing_explicit_path(self, isolated):
        with pytest.raises(ConfigError):
            load_settings(str(isolated / "missing.json"))

    def test_bad_json(self, isolated):
        (isolated / "mercury.json").write_text("{indent: ")
        with pytest.raises(ConfigError) as exc:
            load_settings()
        assert exc.value.line_number == 1

    def test_unknown_key(self, isolated):
        (isolated / "mercury.json").write_text(json.dumps({"tabs": True}))
        with pytest.raises(ConfigError) as exc:
            load_settings()
        assert "tabs" in str(exc.value)

    def test_invalid_value(self, isolated):
        (isolated / "mercury.json").write_text(json.dumps({"max_iterations": 0}))
        with pytest.raises(ConfigError):
            load_settings()

    def test_invalid_choice(self, isolated):
        (isolated / "mercury.json").write_text(json.dumps({"call_parentheses": "sometimes"}))
        with pytest.raises(ConfigError):
            load_settings()
