"""Command line entry points.

Usage:
    # Run the MCP server against a Memos instance
    memos-mcp --base-url https://memos.example.com --access-token TOKEN

    # Download (or reuse) the release binary for this platform and run it
    memos-mcp-launcher --base-url https://memos.example.com
"""

import argparse
import asyncio
import os
import sys
from typing import List, Mapping, Optional

from memos_mcp import __version__
from memos_mcp.binaries.manager import BinaryManager
from memos_mcp.binaries.platforms import detect_platform
from memos_mcp.config import build_server_args, resolve_binary_config, resolve_server_config
from memos_mcp.errors import MemosMcpError, log_error
from memos_mcp.launcher import run_binary
from memos_mcp.logging import configure_logging, get_logger

logger = get_logger("cli")


def _add_server_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--base-url",
        help="Memos instance URL (default: $MEMOS_BASE_URL or http://localhost:5230)",
    )
    parser.add_argument(
        "--access-token", help="Memos access token (default: $MEMOS_ACCESS_TOKEN)"
    )
    parser.add_argument(
        "--api-token", help="Alias for --access-token; takes precedence when both are set"
    )
    parser.add_argument(
        "--timeout", type=float, help="HTTP timeout in seconds (default: 30)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr output",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )


def build_server_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memos-mcp", description="MCP server for the Memos note-taking API"
    )
    _add_server_arguments(parser)
    return parser


def build_launcher_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memos-mcp-launcher",
        description="Fetch the memos-mcp release binary for this platform and run it",
    )
    _add_server_arguments(parser)
    parser.add_argument(
        "--version-tag",
        help="Release tag to run, or 'latest' (default: $MEMOS_MCP_VERSION or latest)",
    )
    parser.add_argument(
        "--cache-dir", help="Binary cache directory (default: $MEMOS_MCP_CACHE_DIR)"
    )
    parser.add_argument(
        "--repository", help="GitHub owner/name publishing the releases"
    )
    parser.add_argument(
        "--require-checksum",
        action="store_true",
        default=None,
        help="Refuse binaries that cannot be verified against checksums.txt",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG level"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the MCP server."""
    args = build_server_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = resolve_server_config(
            os.environ,
            base_url=args.base_url,
            access_token=args.access_token,
            api_token=args.api_token,
            timeout=args.timeout,
        )
    except MemosMcpError as e:
        log_error(e)
        sys.exit(1)

    from memos_mcp.server import run

    run(config)


async def launch(args: argparse.Namespace, env: Mapping[str, str]) -> int:
    """Resolve, verify and run the binary; returns the child's exit code.

    Raises:
        MemosMcpError: anything that fails before the child is spawned
    """
    server_config = resolve_server_config(
        env,
        base_url=args.base_url,
        access_token=args.access_token,
        api_token=args.api_token,
        timeout=args.timeout,
    )
    binary_config = resolve_binary_config(
        env,
        cache_dir=args.cache_dir,
        repository=args.repository,
        version=args.version_tag,
        require_checksum=args.require_checksum,
    )

    info = detect_platform()
    manager = BinaryManager(binary_config)
    path = await manager.ensure_binary(info)

    return await run_binary(path, build_server_args(server_config))


def launcher_main(argv: Optional[List[str]] = None) -> None:
    """Run the release binary, exiting with its exit code."""
    args = build_launcher_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else args.log_level)

    try:
        code = asyncio.run(launch(args, os.environ))
    except KeyboardInterrupt:
        logger.info("received_keyboard_interrupt")
        sys.exit(130)
    except MemosMcpError as e:
        log_error(e)
        sys.exit(1)
    except Exception as e:
        logger.exception("launcher_failed", error=str(e))
        sys.exit(1)

    sys.exit(code)
