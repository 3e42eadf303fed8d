"""Core type definitions"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from memos_mcp.binaries.constants import GITHUB_API_BASE, GITHUB_BASE


class OS(str, Enum):
    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"


class Arch(str, Enum):
    X64 = "x64"
    ARM64 = "arm64"


@dataclass(frozen=True)
class PlatformInfo:
    """Host platform a release binary is selected for"""
    os: OS
    arch: Arch


@dataclass(frozen=True)
class ChecksumRecord:
    """One entry of a release checksum manifest"""
    sha256: str
    filename: str


class ChecksumStatus(str, Enum):
    FOUND = "found"
    NOT_LISTED = "not_listed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ChecksumLookup:
    """Outcome of looking a binary up in the release checksum manifest"""
    status: ChecksumStatus
    record: Optional[ChecksumRecord] = None
    reason: str = ""

    @property
    def found(self) -> bool:
        return self.status == ChecksumStatus.FOUND


class BinaryState(str, Enum):
    RESOLVING_VERSION = "resolving_version"
    CHECKING_CACHE = "checking_cache"
    CACHE_HIT = "cache_hit"
    DOWNLOADING = "downloading"
    FINALIZING = "finalizing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class BinaryManagerConfig:
    """Binary cache and release source settings"""
    cache_dir: Path
    repository: str
    version: str
    require_checksum: bool = False
    api_base: str = GITHUB_API_BASE
    download_base: str = GITHUB_BASE


@dataclass(frozen=True)
class ServerConfig:
    """Memos API connection settings"""
    base_url: str
    access_token: str
    timeout: float
