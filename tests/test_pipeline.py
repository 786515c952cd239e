"""
Unit tests for pipeline.py - orchestration of formatting and rewriting.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
import pipeline
from luau.config import MercurySettings
from pipeline import FileResult, compat_and_format, compat_source, format_source, process_file


class TestSourceFunctions:
    """Tests for the in-memory entry points."""

    def test_format_text_returns_text(self):
        assert format_source("local   x=1") == "local x = 1\n"

    def test_format_bytes_returns_bytes(self):
        assert format_source(b"local   x=1") == b"local x = 1\n"

    def test_compat_source(self):
        assert compat_source("local q = a // b") == "local q = math.floor(a/b)\n"

    def test_compat_and_format(self):
        source = "local v = if x then y else z"
        expected = "local v = (function()\n\tif x then\n\t\treturn y\n\telse\n\t\treturn z\n\tend\nend)()\n"
        assert compat_and_format(source) == expected

    def test_settings_are_used(self):
        settings = MercurySettings(indent="  ")
        assert format_source("do f() end", settings) == "do\n  f()\nend\n"

    def test_parse_error_unchanged(self):
        assert format_source(b"local = 1") == b"local = 1"
        assert compat_and_format(b"local = 1") == b"local = 1"


class TestProcessFile:
    """Tests for file processing."""

    @pytest.fixture
    def lua_file(self, tmp_path):
        path = tmp_path / "main.luau"
        path.write_bytes(b"local q = a // b\n")
        return path

    def test_compatibility_does_not_write(self, lua_file):
        result = process_file(str(lua_file), "compatibility")
        assert isinstance(result, FileResult)
        assert result.ok
        assert result.changed
        assert result.output == b"local q = math.floor(a/b)\n"
        assert lua_file.read_bytes() == b"local q = a // b\n"

    def test_write(self, lua_file):
        result = process_file(str(lua_file), "compatibility", write=True)
        assert result.changed
        assert lua_file.read_bytes() == b"local q = math.floor(a/b)\n"

    def test_format_unchanged(self, tmp_path):
        path = tmp_path / "clean.luau"
        path.write_bytes(b"local x = 1\n")
        result = process_file(str(path), "format", write=True)
        assert result.ok
        assert not result.changed

    def test_parse_error(self, tmp_path):
        path = tmp_path / "broken.luau"
        path.write_bytes(b"local = 1\n")
        result = process_file(str(path), "format", write=True)
        assert not result.ok
        assert result.output == b"local = 1\n"
        assert "Syntax error" in result.error
        assert path.read_bytes() == b"local = 1\n"

    def test_missing_file(self, tmp_path):
        result = process_file(str(tmp_path / "nope.luau"), "format")
        assert not result.ok
        assert "not found" in result.error

    def test_unknown_command(self, lua_file):
        with pytest.raises(ValueError):
            process_file(str(lua_file), "minify")


class TestVerbose:
    """Tests for debug logging."""

    def test_debug_log_silent_by_default(self, capsys):
        pipeline.set_verbose(False)
        pipeline.debug_log("hidden")
        assert capsys.readouterr().err == ""

    def test_debug_log_when_verbose(self, capsys):
        pipeline.set_verbose(True)
        try:
            compat_source("local q = a // b")
        finally:
            pipeline.set_verbose(False)
        err = capsys.readouterr().err
        assert "DEBUG:" in err
        assert "1 match(es)" in err
