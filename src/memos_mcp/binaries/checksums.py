"""Release checksum manifest lookup and file hashing."""
import asyncio
import hashlib
from pathlib import Path
from typing import Optional

import aiohttp

from memos_mcp.binaries.constants import (
    CHECKSUMS_FILENAME,
    CHUNK_SIZE,
    DOWNLOAD_PATH,
    GITHUB_BASE,
    RELEASES_PATH,
    USER_AGENT,
)
from memos_mcp.logging import get_logger
from memos_mcp.types import ChecksumLookup, ChecksumRecord, ChecksumStatus

logger = get_logger(__name__)


def release_download_url(
    repository: str, version: str, filename: str, base: str = GITHUB_BASE
) -> str:
    """URL of a file attached to a release."""
    return f"{base.rstrip('/')}/{repository}/{RELEASES_PATH}/{DOWNLOAD_PATH}/{version}/{filename}"


def compute_file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file."""
    sha256_hash = hashlib.sha256()
    with open(path, "rb") as f:
        for byte_block in iter(lambda: f.read(CHUNK_SIZE), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()


def parse_checksums(content: str, filename: str) -> Optional[ChecksumRecord]:
    """Find the record for filename in a `<sha256> <filename>` manifest.

    Blank and malformed lines are skipped; the first match wins.
    """
    for line in content.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[1] == filename:
            return ChecksumRecord(sha256=parts[0].lower(), filename=parts[1])
    return None


async def fetch_checksum(
    repository: str,
    version: str,
    filename: str,
    base: str = GITHUB_BASE,
) -> ChecksumLookup:
    """Look up the published checksum for a release asset.

    Never raises: an unreachable or missing manifest is reported as
    ``ChecksumStatus.UNAVAILABLE``.
    """
    url = release_download_url(repository, version, CHECKSUMS_FILENAME, base)

    try:
        async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    logger.debug(
                        "checksum_manifest_unavailable",
                        url=url,
                        status=response.status,
                    )
                    return ChecksumLookup(
                        status=ChecksumStatus.UNAVAILABLE,
                        reason=f"HTTP {response.status}",
                    )
                content = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
        logger.debug("checksum_manifest_fetch_failed", url=url, error=str(e))
        return ChecksumLookup(status=ChecksumStatus.UNAVAILABLE, reason=str(e))

    record = parse_checksums(content, filename)
    if record is None:
        return ChecksumLookup(
            status=ChecksumStatus.NOT_LISTED,
            reason=f"{filename} not listed in {CHECKSUMS_FILENAME}",
        )

    return ChecksumLookup(status=ChecksumStatus.FOUND, record=record)
