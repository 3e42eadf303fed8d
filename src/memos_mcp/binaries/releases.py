"""Release version resolution."""
import asyncio

import aiohttp

from memos_mcp.binaries.constants import (
    GITHUB_ACCEPT,
    GITHUB_API_BASE,
    GITHUB_REPOS_PATH,
    LATEST_PATH,
    LATEST_VERSION,
    RELEASES_PATH,
    USER_AGENT,
)
from memos_mcp.errors import VersionResolutionError
from memos_mcp.logging import get_logger

logger = get_logger(__name__)


def latest_release_url(repository: str, api_base: str = GITHUB_API_BASE) -> str:
    return f"{api_base.rstrip('/')}/{GITHUB_REPOS_PATH}/{repository}/{RELEASES_PATH}/{LATEST_PATH}"


async def fetch_latest_release_version(
    repository: str, api_base: str = GITHUB_API_BASE
) -> str:
    """Fetch the tag name of the most recent release of a repository."""
    url = latest_release_url(repository, api_base)
    headers = {"Accept": GITHUB_ACCEPT, "User-Agent": USER_AGENT}

    try:
        async with aiohttp.ClientSession(headers=headers) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise VersionResolutionError(
                        repository, f"HTTP {response.status} {response.reason or ''}".strip()
                    )
                data = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise VersionResolutionError(repository, str(e)) from e

    tag = data.get("tag_name") if isinstance(data, dict) else None
    if not isinstance(tag, str) or not tag.strip():
        raise VersionResolutionError(repository, "release has no tag_name")

    logger.debug("latest_release_resolved", repository=repository, version=tag)
    return tag


async def resolve_version(
    repository: str, version: str, api_base: str = GITHUB_API_BASE
) -> str:
    """Return the configured tag verbatim, or look up the latest one."""
    if version != LATEST_VERSION:
        return version
    return await fetch_latest_release_version(repository, api_base)
