"""
Tests for reading the watchdog configuration from the environment.
"""

import pytest
from pydantic import ValidationError

from ..config import load_config, parse_bool, parse_duration, read_config
from ..errors import ConfigurationError


class TestReadConfig:
    """Test building a config from an environment mapping."""

    def test_defaults(self):
        """An empty environment gives the documented defaults."""
        config = read_config({})
        assert config.fprocess == ""
        assert config.read_timeout == 5
        assert config.write_timeout == 5
        assert config.port == 8080
        assert config.content_type == ""
        assert config.marshal_request is False
        assert config.cgi_headers is True
        assert config.debug_headers is False
        assert config.write_debug is True
        assert config.suppress_lock is False
        assert config.lock_path == "/tmp/.lock"

    def test_all_options(self):
        """Every recognised variable is picked up."""
        config = read_config({
            "fprocess": "wc -c",
            "read_timeout": "10",
            "write_timeout": "20s",
            "exec_timeout": "1500ms",
            "port": "9090",
            "content_type": "application/json",
            "marshal_request": "true",
            "cgi_headers": "false",
            "debug_headers": "true",
            "write_debug": "false",
            "suppress_lock": "true",
        })
        assert config.command == ["wc", "-c"]
        assert config.read_timeout == 10
        assert config.write_timeout == 20
        assert config.exec_timeout == 1.5
        assert config.port == 9090
        assert config.content_type == "application/json"
        assert config.marshal_request is True
        assert config.cgi_headers is False
        assert config.debug_headers is True
        assert config.write_debug is False
        assert config.suppress_lock is True

    def test_invalid_values_fall_back(self):
        """Garbage values keep the defaults rather than failing startup."""
        config = read_config({"read_timeout": "soon", "write_timeout": "-3", "port": "http"})
        assert config.read_timeout == 5
        assert config.write_timeout == 5
        assert config.port == 8080

    def test_config_is_immutable(self):
        """The config cannot be changed once built."""
        config = read_config({"fprocess": "cat"})
        with pytest.raises(ValidationError):
            config.fprocess = "rm -rf /"


class TestCommand:
    """Test splitting fprocess into argv."""

    def test_split_on_spaces(self):
        assert read_config({"fprocess": "python3 index.py --fast"}).command == ["python3", "index.py", "--fast"]

    def test_repeated_spaces_are_ignored(self):
        assert read_config({"fprocess": " cat  -n "}).command == ["cat", "-n"]

    def test_empty_command_is_fatal(self):
        """An empty fprocess is a configuration error."""
        with pytest.raises(ConfigurationError, match="fprocess"):
            read_config({"fprocess": "   "}).ensure_valid()

    def test_valid_command_passes(self):
        read_config({"fprocess": "cat"}).ensure_valid()


class TestInvocationTimeout:
    """Test which timeout bounds a single invocation."""

    def test_exec_timeout_wins(self):
        config = read_config({"exec_timeout": "2", "write_timeout": "10"})
        assert config.invocation_timeout == 2

    def test_falls_back_to_write_timeout(self):
        assert read_config({"write_timeout": "7"}).invocation_timeout == 7

    def test_unbounded_when_both_zero(self):
        assert read_config({"write_timeout": "0"}).invocation_timeout is None


class TestParsers:
    """Test the value parsers."""

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("false", False),
        ("", None),
        ("yes", None),
        (None, None),
    ])
    def test_parse_bool(self, value, expected):
        """Only the literals true and false are recognised."""
        for default in (True, False):
            result = parse_bool(value, default)
            assert result == (default if expected is None else expected)

    @pytest.mark.parametrize("value,expected", [
        ("3", 3.0),
        ("2.5", 2.5),
        ("250ms", 0.25),
        ("4s", 4.0),
        ("2m", 120.0),
        ("1h", 3600.0),
        ("", 9.0),
        ("ten", 9.0),
    ])
    def test_parse_duration(self, value, expected):
        assert parse_duration(value, 9.0) == expected


class TestLoadConfig:
    """Test loading config through a .env file."""

    def test_env_file_is_loaded(self, tmp_path, monkeypatch):
        """Values from the .env file are read when not already set."""
        for name in ("fprocess", "content_type"):
            monkeypatch.setenv(name, "placeholder")
            monkeypatch.delenv(name)

        env_file = tmp_path / ".env"
        env_file.write_text('fprocess="cat -n"\ncontent_type=text/csv\n')

        config = load_config(str(env_file))
        assert config.command == ["cat", "-n"]
        assert config.content_type == "text/csv"

    def test_environment_wins_over_env_file(self, tmp_path, monkeypatch):
        """Variables already in the environment are not overridden."""
        monkeypatch.setenv("fprocess", "wc -l")
        env_file = tmp_path / ".env"
        env_file.write_text("fprocess=cat\n")

        assert load_config(str(env_file)).fprocess == "wc -l"
