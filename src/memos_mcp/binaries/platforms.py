"""Platform detection and release asset naming."""
import platform
from typing import Optional

from memos_mcp.binaries.constants import BINARY_PREFIX
from memos_mcp.errors import UnsupportedPlatformError
from memos_mcp.logging import get_logger
from memos_mcp.types import Arch, OS, PlatformInfo

logger = get_logger(__name__)

# Host names as reported by platform.system() / sys.platform, lowercased
OS_MAPPINGS = {
    "darwin": OS.DARWIN,
    "linux": OS.LINUX,
    "windows": OS.WINDOWS,
    "win32": OS.WINDOWS,
}

# Host names as reported by platform.machine(), lowercased
ARCH_MAPPINGS = {
    "x64": Arch.X64,
    "x86_64": Arch.X64,
    "amd64": Arch.X64,
    "arm64": Arch.ARM64,
    "aarch64": Arch.ARM64,
}

# Architecture names used in release asset file names
ASSET_ARCH_NAMES = {
    Arch.X64: "amd64",
    Arch.ARM64: "arm64",
}

SUPPORTED_OS = [os_.value for os_ in OS]
SUPPORTED_ARCH = [arch.value for arch in Arch]


def detect_platform(
    system: Optional[str] = None, machine: Optional[str] = None
) -> PlatformInfo:
    """Map the host OS and CPU architecture to a supported platform.

    Both arguments default to the running interpreter's host values.
    """
    system = platform.system() if system is None else system
    machine = platform.machine() if machine is None else machine

    os_name = OS_MAPPINGS.get(system.strip().lower())
    if os_name is None:
        raise UnsupportedPlatformError(
            f"Unsupported operating system: {system}. "
            f"Supported: {', '.join(SUPPORTED_OS)}",
            value=system,
            supported=SUPPORTED_OS,
        )

    arch = ARCH_MAPPINGS.get(machine.strip().lower())
    if arch is None:
        raise UnsupportedPlatformError(
            f"Unsupported architecture: {machine}. "
            f"Supported: {', '.join(SUPPORTED_ARCH)}",
            value=machine,
            supported=SUPPORTED_ARCH,
        )

    if os_name is OS.WINDOWS:
        logger.warning("windows_support_experimental")

    return PlatformInfo(os=os_name, arch=arch)


def binary_name(info: PlatformInfo) -> str:
    """Release asset file name for a platform."""
    ext = ".exe" if info.os is OS.WINDOWS else ""
    return f"{BINARY_PREFIX}-{info.os.value}-{ASSET_ARCH_NAMES[info.arch]}{ext}"


def is_platform_supported() -> bool:
    """Check if current platform is supported."""
    try:
        detect_platform()
        return True
    except UnsupportedPlatformError:
        return False
