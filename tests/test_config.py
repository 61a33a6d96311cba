"""Tests for configuration and the command line entry point."""

import logging
from pathlib import Path

import pytest

from minihttpd.cli import main
from minihttpd.config import DEFAULT_PORT, ServerConfig, parse_args
from minihttpd.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MINIHTTPD_HOST", "MINIHTTPD_PORT", "MINIHTTPD_DIRECTORY"):
        monkeypatch.delenv(name, raising=False)


class TestParseArgs:
    """Test command line and environment handling."""

    def test_defaults(self):
        options = parse_args([])
        assert options.config == ServerConfig(host="0.0.0.0", port=DEFAULT_PORT, directory=Path("."))
        assert options.log_level == logging.INFO

    def test_flags(self, tmp_path):
        options = parse_args(
            ["--host", "127.0.0.1", "--port", "8080", "--directory", str(tmp_path), "--log-level", "DEBUG"]
        )
        assert options.config == ServerConfig(host="127.0.0.1", port=8080, directory=tmp_path)
        assert options.log_level == logging.DEBUG

    def test_environment_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MINIHTTPD_HOST", "::1")
        monkeypatch.setenv("MINIHTTPD_PORT", "9000")
        monkeypatch.setenv("MINIHTTPD_DIRECTORY", str(tmp_path))
        assert parse_args([]).config == ServerConfig(host="::1", port=9000, directory=tmp_path)

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("MINIHTTPD_PORT", "9000")
        assert parse_args(["--port", "9001"]).config.port == 9001

    def test_bad_environment_port(self, monkeypatch):
        monkeypatch.setenv("MINIHTTPD_PORT", "nope")
        with pytest.raises(SystemExit):
            parse_args([])

    def test_bad_flag_port(self):
        with pytest.raises(SystemExit):
            parse_args(["--port", "nope"])


class TestValidated:
    """Test the directory check that runs before the listener starts."""

    def test_resolves_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ServerConfig(directory=Path(".")).validated()
        assert config.directory == tmp_path.resolve()
        assert config.directory.is_absolute()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigError, match="failed to check directory path"):
            ServerConfig(directory=tmp_path / "missing").validated()

    def test_not_a_directory(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(ConfigError, match="invalid directory path"):
            ServerConfig(directory=path).validated()

    def test_bad_port(self, tmp_path):
        with pytest.raises(ConfigError, match="invalid port"):
            ServerConfig(port=70000, directory=tmp_path).validated()

    def test_is_immutable(self):
        config = ServerConfig()
        with pytest.raises(AttributeError):
            config.port = 1  # type: ignore[misc]


def test_main_rejects_missing_directory(tmp_path):
    assert main(["--directory", str(tmp_path / "missing")]) == 1
