"""Binary cache orchestration: resolve, verify, fetch, publish."""
import os
from pathlib import Path

from memos_mcp.binaries.checksums import compute_file_hash, fetch_checksum
from memos_mcp.binaries.fetcher import download_binary
from memos_mcp.binaries.platforms import binary_name
from memos_mcp.binaries.releases import resolve_version
from memos_mcp.logging import get_logger
from memos_mcp.types import BinaryManagerConfig, BinaryState, OS, PlatformInfo

logger = get_logger(__name__)


class BinaryManager:
    """Keeps a verified memos-mcp release binary in the local cache.

    Cache layout is ``<cache_dir>/<version>/<binary name>``; nothing is
    written outside ``<cache_dir>/<version>/``.
    """

    def __init__(self, config: BinaryManagerConfig):
        self.config = config
        self.state = BinaryState.RESOLVING_VERSION

    def _transition(self, state: BinaryState, **data) -> None:
        logger.debug("binary_state", previous=self.state.value, state=state.value, **data)
        self.state = state

    def binary_path(self, info: PlatformInfo, version: str) -> Path:
        return self.config.cache_dir / version / binary_name(info)

    async def resolve_version(self) -> str:
        return await resolve_version(
            self.config.repository, self.config.version, self.config.api_base
        )

    async def ensure_binary(self, info: PlatformInfo) -> Path:
        """Return the path of an executable binary for info, downloading it if needed.

        Raises:
            VersionResolutionError: the latest release could not be looked up
            DownloadError: the release asset could not be downloaded
            ChecksumMismatchError: a fresh download failed verification
        """
        self.state = BinaryState.RESOLVING_VERSION
        try:
            version = await self.resolve_version()
            path = self.binary_path(info, version)

            self._transition(BinaryState.CHECKING_CACHE, version=version, path=str(path))
            if await self.is_valid_binary(path, info, version):
                self._transition(BinaryState.CACHE_HIT)
                logger.info("using_cached_binary", version=version, path=str(path))
                self._transition(BinaryState.READY)
                return path

            self._transition(BinaryState.DOWNLOADING)
            logger.info(
                "downloading_binary",
                version=version,
                platform=f"{info.os.value}-{info.arch.value}",
            )
            await download_binary(
                path,
                info,
                version,
                self.config.repository,
                download_base=self.config.download_base,
                require_checksum=self.config.require_checksum,
            )

            self._transition(BinaryState.FINALIZING)
            make_executable(path, info)
        except Exception as e:
            self._transition(BinaryState.FAILED, error=str(e))
            raise

        self._transition(BinaryState.READY)
        logger.info("binary_ready", version=version, path=str(path))
        return path

    async def is_valid_binary(self, path: Path, info: PlatformInfo, version: str) -> bool:
        """Check that a cached binary exists, is executable and matches its checksum.

        A binary whose checksum cannot be obtained is trusted with a warning,
        unless the config requires checksums.
        """
        if not path.is_file() or not os.access(path, os.X_OK):
            return False

        lookup = await fetch_checksum(
            self.config.repository, version, binary_name(info), self.config.download_base
        )
        if lookup.found:
            try:
                actual = compute_file_hash(path)
            except OSError as e:
                logger.warning("cached_binary_unreadable", path=str(path), error=str(e))
                return False
            if actual != lookup.record.sha256:
                logger.warning(
                    "cached_binary_checksum_mismatch",
                    path=str(path),
                    expected=lookup.record.sha256,
                    computed=actual,
                )
                return False
            return True

        if self.config.require_checksum:
            logger.warning(
                "cached_binary_unverifiable", path=str(path), reason=lookup.reason
            )
            return False

        logger.warning(
            "checksum_unverified_using_cached_binary",
            path=str(path),
            reason=lookup.reason,
        )
        return True


def make_executable(path: Path, info: PlatformInfo) -> None:
    """Set the execute bits; Windows does not use them."""
    if info.os is OS.WINDOWS:
        return
    path.chmod(0o755)
