"""Tests for release binary downloads."""
import pytest

from memos_mcp.binaries.fetcher import download_binary, download_file, temp_path_for
from memos_mcp.errors import (
    BinaryNotFoundError,
    ChecksumMismatchError,
    ChecksumUnavailableError,
    DownloadError,
)

from conftest import ASSET_BYTES, ASSET_NAME, REPOSITORY, TAG, sha256_hex


@pytest.fixture
def dest(tmp_path):
    return tmp_path / TAG / ASSET_NAME


def test_temp_path_for(tmp_path):
    assert temp_path_for(tmp_path / ASSET_NAME) == tmp_path / f"{ASSET_NAME}.tmp"


@pytest.mark.asyncio
async def test_download_follows_redirect_and_publishes(release_server, linux_x64, dest):
    await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert dest.read_bytes() == ASSET_BYTES
    assert not temp_path_for(dest).exists()
    assert release_server.download_count() == 1


@pytest.mark.asyncio
async def test_missing_asset(release_server, linux_x64, dest):
    with pytest.raises(BinaryNotFoundError) as exc_info:
        await download_binary(dest, linux_x64, "v9.9.9", REPOSITORY, release_server.base_url)

    message = str(exc_info.value)
    assert "Binary not found for linux-x64 version v9.9.9" in message
    assert f"{release_server.base_url}/{REPOSITORY}/releases" in message
    assert not dest.exists()
    assert not temp_path_for(dest).exists()


@pytest.mark.asyncio
async def test_server_error(release_server, linux_x64, dest):
    release_server.asset_status = 502

    with pytest.raises(DownloadError) as exc_info:
        await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert not isinstance(exc_info.value, BinaryNotFoundError)
    assert not dest.exists()


@pytest.mark.asyncio
async def test_checksum_mismatch_leaves_nothing_behind(release_server, linux_x64, dest):
    release_server.checksums = f"{'0' * 64}  {ASSET_NAME}\n"

    with pytest.raises(ChecksumMismatchError) as exc_info:
        await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert exc_info.value.expected == "0" * 64
    assert exc_info.value.actual == sha256_hex(ASSET_BYTES)
    assert not dest.exists()
    assert not temp_path_for(dest).exists()


@pytest.mark.asyncio
async def test_truncated_download_is_rejected(release_server, linux_x64, dest):
    release_server.served[ASSET_NAME] = ASSET_BYTES[: len(ASSET_BYTES) // 2]

    with pytest.raises(ChecksumMismatchError):
        await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert not dest.exists()
    assert not temp_path_for(dest).exists()


@pytest.mark.asyncio
async def test_unlisted_checksum_is_trusted(release_server, linux_x64, dest):
    release_server.checksums = "abc  some-other-asset\n"

    await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert dest.read_bytes() == ASSET_BYTES


@pytest.mark.asyncio
async def test_required_checksum_unavailable(release_server, linux_x64, dest):
    release_server.checksums = None

    with pytest.raises(ChecksumUnavailableError):
        await download_binary(
            dest,
            linux_x64,
            TAG,
            REPOSITORY,
            release_server.base_url,
            require_checksum=True,
        )

    assert not dest.exists()
    assert not temp_path_for(dest).exists()


@pytest.mark.asyncio
async def test_replaces_existing_file(release_server, linux_x64, dest):
    dest.parent.mkdir(parents=True)
    dest.write_bytes(b"stale")

    await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert dest.read_bytes() == ASSET_BYTES


@pytest.mark.asyncio
async def test_dropped_connection_without_manifest(release_server, linux_x64, dest):
    release_server.checksums = None
    release_server.drop_after[ASSET_NAME] = 1000

    with pytest.raises(DownloadError):
        await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)

    assert not dest.exists()
    assert not temp_path_for(dest).exists()


@pytest.mark.asyncio
async def test_cache_directory_not_creatable(release_server, linux_x64, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    dest = blocker / TAG / ASSET_NAME

    with pytest.raises(DownloadError, match="Failed to create cache directory"):
        await download_binary(dest, linux_x64, TAG, REPOSITORY, release_server.base_url)


@pytest.mark.asyncio
async def test_write_failure_is_a_download_error(release_server, linux_x64, tmp_path):
    url = f"{release_server.base_url}/{REPOSITORY}/releases/download/{TAG}/{ASSET_NAME}"
    dest = tmp_path / "missing-dir" / ASSET_NAME

    with pytest.raises(DownloadError) as exc_info:
        await download_file(url, dest, linux_x64, TAG, release_server.base_url)

    assert isinstance(exc_info.value.__cause__, OSError)
    assert not dest.exists()
