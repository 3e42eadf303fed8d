"""Configuration resolution.

Every resolver takes the environment mapping as a parameter so callers
decide where settings come from; nothing here reads ``os.environ``.
"""
import math
import platform
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlparse

import appdirs

from memos_mcp.binaries.constants import DEFAULT_REPOSITORY, DEFAULT_VERSION
from memos_mcp.errors import ConfigError
from memos_mcp.types import BinaryManagerConfig, ServerConfig

APP_NAME = "memos-mcp"

CACHE_DIR_ENV = "MEMOS_MCP_CACHE_DIR"
REPOSITORY_ENV = "MEMOS_MCP_REPOSITORY"
VERSION_ENV = "MEMOS_MCP_VERSION"
REQUIRE_CHECKSUM_ENV = "MEMOS_MCP_REQUIRE_CHECKSUM"
BASE_URL_ENV = "MEMOS_BASE_URL"
ACCESS_TOKEN_ENV = "MEMOS_ACCESS_TOKEN"
API_TOKEN_ENV = "MEMOS_API_TOKEN"

DEFAULT_BASE_URL = "http://localhost:5230"
DEFAULT_TIMEOUT = 30.0

TRUTHY = {"1", "true", "yes", "on"}


def resolve_cache_dir(
    env: Mapping[str, str],
    override: Optional[str] = None,
    system: Optional[str] = None,
) -> Path:
    """Pick the binary cache root.

    Precedence: explicit override, $MEMOS_MCP_CACHE_DIR, $XDG_CACHE_HOME on
    Linux, then the platform's user cache directory.
    """
    if override:
        return Path(override).expanduser()
    if env.get(CACHE_DIR_ENV):
        return Path(env[CACHE_DIR_ENV]).expanduser()

    system = (system or platform.system()).lower()
    if system == "linux" and env.get("XDG_CACHE_HOME"):
        return Path(env["XDG_CACHE_HOME"]).expanduser() / APP_NAME

    return Path(appdirs.user_cache_dir(APP_NAME, appauthor=False))


def parse_bool(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in TRUTHY


def resolve_binary_config(
    env: Mapping[str, str],
    cache_dir: Optional[str] = None,
    repository: Optional[str] = None,
    version: Optional[str] = None,
    require_checksum: Optional[bool] = None,
) -> BinaryManagerConfig:
    """Build the immutable binary manager config from overrides and env."""
    if require_checksum is None:
        require_checksum = parse_bool(env.get(REQUIRE_CHECKSUM_ENV))

    return BinaryManagerConfig(
        cache_dir=resolve_cache_dir(env, cache_dir),
        repository=repository or env.get(REPOSITORY_ENV) or DEFAULT_REPOSITORY,
        version=version or env.get(VERSION_ENV) or DEFAULT_VERSION,
        require_checksum=require_checksum,
    )


def validate_base_url(base_url: str) -> str:
    parsed = urlparse(base_url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise ConfigError(f"Invalid base URL: {base_url}", details={"base_url": base_url})
    return base_url.strip()


def resolve_server_config(
    env: Mapping[str, str],
    base_url: Optional[str] = None,
    access_token: Optional[str] = None,
    api_token: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ServerConfig:
    """Build the Memos connection config.

    ``api_token`` is an alias for ``access_token`` and wins when both are set.
    """
    base_url = base_url or env.get(BASE_URL_ENV) or DEFAULT_BASE_URL
    token = (
        api_token
        or access_token
        or env.get(ACCESS_TOKEN_ENV)
        or env.get(API_TOKEN_ENV)
        or ""
    )
    timeout = DEFAULT_TIMEOUT if timeout is None else timeout

    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigError("Timeout must be a positive number", details={"timeout": timeout})

    return ServerConfig(
        base_url=validate_base_url(base_url),
        access_token=token,
        timeout=float(timeout),
    )


def build_server_args(config: ServerConfig) -> list[str]:
    """Command line for a launched memos-mcp binary."""
    # the binary takes whole seconds
    args = ["--base-url", config.base_url, "--timeout", str(math.ceil(config.timeout))]
    if config.access_token:
        args.extend(["--access-token", config.access_token])
    return args
