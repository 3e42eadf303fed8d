"""Tests for configuration resolution."""
import math
from pathlib import Path

import appdirs
import pytest

from memos_mcp.config import (
    build_server_args,
    parse_bool,
    resolve_binary_config,
    resolve_cache_dir,
    resolve_server_config,
)
from memos_mcp.errors import ConfigError
from memos_mcp.types import ServerConfig


def test_cache_dir_override_wins(tmp_path):
    env = {"MEMOS_MCP_CACHE_DIR": "/from/env", "XDG_CACHE_HOME": "/xdg"}
    assert resolve_cache_dir(env, override=str(tmp_path)) == tmp_path


def test_cache_dir_from_env():
    env = {"MEMOS_MCP_CACHE_DIR": "/from/env", "XDG_CACHE_HOME": "/xdg"}
    assert resolve_cache_dir(env, system="Linux") == Path("/from/env")


def test_cache_dir_xdg_on_linux():
    assert resolve_cache_dir({"XDG_CACHE_HOME": "/xdg"}, system="Linux") == Path(
        "/xdg/memos-mcp"
    )


def test_cache_dir_platform_default():
    expected = Path(appdirs.user_cache_dir("memos-mcp", appauthor=False))
    assert resolve_cache_dir({"XDG_CACHE_HOME": "/xdg"}, system="Darwin") == expected


@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("true", True), (" YES ", True), ("on", True), ("0", False), ("", False), (None, False)],
)
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_binary_config_defaults(tmp_path):
    config = resolve_binary_config({"MEMOS_MCP_CACHE_DIR": str(tmp_path)})

    assert config.cache_dir == tmp_path
    assert config.repository == "jtsang4/memos-mcp"
    assert config.version == "latest"
    assert config.require_checksum is False
    assert config.api_base == "https://api.github.com"


def test_binary_config_from_env(tmp_path):
    env = {
        "MEMOS_MCP_CACHE_DIR": str(tmp_path),
        "MEMOS_MCP_REPOSITORY": "someone/fork",
        "MEMOS_MCP_VERSION": "v0.3.1",
        "MEMOS_MCP_REQUIRE_CHECKSUM": "true",
    }

    config = resolve_binary_config(env)

    assert config.repository == "someone/fork"
    assert config.version == "v0.3.1"
    assert config.require_checksum is True


def test_binary_config_arguments_override_env(tmp_path):
    env = {"MEMOS_MCP_VERSION": "v0.3.1", "MEMOS_MCP_REQUIRE_CHECKSUM": "1"}

    config = resolve_binary_config(
        env, cache_dir=str(tmp_path), version="v0.4.0", require_checksum=False
    )

    assert config.version == "v0.4.0"
    assert config.require_checksum is False


def test_server_config_defaults():
    config = resolve_server_config({})

    assert config == ServerConfig(
        base_url="http://localhost:5230", access_token="", timeout=30.0
    )


def test_server_config_tokens():
    env = {"MEMOS_ACCESS_TOKEN": "env-token", "MEMOS_BASE_URL": "https://memos.example.com"}

    assert resolve_server_config(env).access_token == "env-token"
    assert resolve_server_config(env, access_token="flag").access_token == "flag"
    assert resolve_server_config(env, access_token="flag", api_token="api").access_token == "api"
    assert resolve_server_config({"MEMOS_API_TOKEN": "alias"}).access_token == "alias"


def test_invalid_base_url():
    with pytest.raises(ConfigError, match="Invalid base URL: not-a-url"):
        resolve_server_config({}, base_url="not-a-url")


@pytest.mark.parametrize("timeout", [0, -5, math.inf, math.nan])
def test_invalid_timeout(timeout):
    with pytest.raises(ConfigError, match="Timeout must be a positive number"):
        resolve_server_config({}, timeout=timeout)


def test_build_server_args():
    config = ServerConfig(base_url="https://memos.example.com", access_token="", timeout=30)
    assert build_server_args(config) == [
        "--base-url",
        "https://memos.example.com",
        "--timeout",
        "30",
    ]


def test_build_server_args_with_token():
    config = ServerConfig(base_url="https://memos.example.com", access_token="tok", timeout=2.5)
    assert build_server_args(config) == [
        "--base-url",
        "https://memos.example.com",
        "--timeout",
        "3",
        "--access-token",
        "tok",
    ]
