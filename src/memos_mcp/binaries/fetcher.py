"""Release binary download with checksum verification."""
import asyncio
import os
from pathlib import Path

import aiohttp

from memos_mcp.binaries.checksums import (
    compute_file_hash,
    fetch_checksum,
    release_download_url,
)
from memos_mcp.binaries.constants import (
    CHUNK_SIZE,
    GITHUB_BASE,
    RELEASES_PATH,
    TEMP_SUFFIX,
    USER_AGENT,
)
from memos_mcp.binaries.platforms import binary_name
from memos_mcp.errors import (
    BinaryNotFoundError,
    ChecksumMismatchError,
    ChecksumUnavailableError,
    DownloadError,
)
from memos_mcp.logging import get_logger
from memos_mcp.types import PlatformInfo

logger = get_logger(__name__)


def temp_path_for(dest: Path) -> Path:
    return dest.with_name(dest.name + TEMP_SUFFIX)


def releases_page_url(repository: str, base: str = GITHUB_BASE) -> str:
    return f"{base.rstrip('/')}/{repository}/{RELEASES_PATH}"


def remove_temp_file(path: Path) -> None:
    """Best-effort removal of a partial download."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("temp_cleanup_failed", path=str(path), error=str(e))


async def download_file(
    url: str, dest: Path, info: PlatformInfo, version: str, releases_url: str
) -> int:
    """Stream url into dest, following redirects. Returns bytes written."""
    logger.info("binary_download_started", url=url, destination=str(dest))

    try:
        async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as session:
            async with session.get(url, allow_redirects=True) as response:
                if response.status == 404:
                    raise BinaryNotFoundError(
                        info.os.value, info.arch.value, version, releases_url
                    )
                if response.status != 200:
                    logger.error(
                        "binary_download_request_failed",
                        url=url,
                        status=response.status,
                        reason=response.reason,
                    )
                    raise DownloadError(
                        f"Failed to download binary: {response.status} {response.reason or ''}".strip(),
                        details={"url": url, "status": response.status},
                    )

                downloaded = 0
                with open(dest, "wb") as f:
                    while chunk := await response.content.read(CHUNK_SIZE):
                        f.write(chunk)
                        downloaded += len(chunk)
                    f.flush()
                    os.fsync(f.fileno())

    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        logger.error("binary_download_failed", url=url, error=str(e))
        raise DownloadError(
            f"Failed to download binary from {url}: {e}", details={"url": url}
        ) from e

    logger.info("binary_download_complete", url=url, size=downloaded)
    return downloaded


async def download_binary(
    dest: Path,
    info: PlatformInfo,
    version: str,
    repository: str,
    download_base: str = GITHUB_BASE,
    require_checksum: bool = False,
) -> None:
    """Download a release binary to dest, verifying it before publishing.

    The file is written to ``dest.tmp`` first and renamed into place only
    after its checksum has been checked, so dest is either absent or a
    complete, verified file.

    Raises:
        BinaryNotFoundError: no asset exists for this platform and version
        DownloadError: the request or a filesystem write failed
        ChecksumMismatchError: the downloaded bytes do not match the manifest
        ChecksumUnavailableError: require_checksum is set and the manifest
            has no usable entry
    """
    name = binary_name(info)
    url = release_download_url(repository, version, name, download_base)
    tmp_path = temp_path_for(dest)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadError(
            f"Failed to create cache directory {dest.parent}: {e}",
            details={"path": str(dest.parent)},
        ) from e

    try:
        await download_file(
            url, tmp_path, info, version, releases_page_url(repository, download_base)
        )

        lookup = await fetch_checksum(repository, version, name, download_base)
        if lookup.found:
            actual = compute_file_hash(tmp_path)
            if actual != lookup.record.sha256:
                logger.error(
                    "checksum_verification_failed",
                    binary=name,
                    version=version,
                    expected=lookup.record.sha256,
                    computed=actual,
                )
                remove_temp_file(tmp_path)
                raise ChecksumMismatchError(lookup.record.sha256, actual)
            logger.info("checksum_verified", binary=name, version=version)
        elif require_checksum:
            raise ChecksumUnavailableError(name, version, lookup.reason)
        else:
            logger.warning(
                "checksum_unverified",
                binary=name,
                version=version,
                reason=lookup.reason,
            )

        try:
            os.replace(tmp_path, dest)
        except OSError as e:
            raise DownloadError(
                f"Failed to publish binary to {dest}: {e}", details={"path": str(dest)}
            ) from e
    except BaseException:
        remove_temp_file(tmp_path)
        raise

    logger.info("binary_published", path=str(dest))
