"""Error types for memos-mcp."""
from typing import Any, Dict, Optional

from mcp.types import ErrorData, INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST

from memos_mcp.logging import get_logger

logger = get_logger(__name__)


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error with context."""
    error_info: Dict[str, Any] = {
        "error_type": error.__class__.__name__,
        "error_message": str(error),
    }
    if context:
        error_info["context"] = context
    if isinstance(error, MemosMcpError):
        error_info["code"] = error.code
        error_info["details"] = error.details

    logger.error("error_occurred", **error_info)


class MemosMcpError(Exception):
    """Base error class for memos-mcp."""

    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(code=self.code, message=str(self), data=self.details)


class ConfigError(MemosMcpError):
    """Invalid command line or environment configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INVALID_PARAMS, details=details)


class UnsupportedPlatformError(MemosMcpError):
    """Host OS or architecture has no published binary."""

    def __init__(self, message: str, value: str, supported: list[str]):
        super().__init__(
            message,
            code=INVALID_REQUEST,
            details={"value": value, "supported": supported},
        )


class VersionResolutionError(MemosMcpError):
    """The latest release tag could not be determined."""

    def __init__(self, repository: str, reason: str):
        super().__init__(
            f"Failed to fetch latest release for {repository}: {reason}",
            details={"repository": repository, "reason": reason},
        )


class DownloadError(MemosMcpError):
    """Release asset download failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class BinaryNotFoundError(DownloadError):
    """No release asset exists for this platform and version."""

    def __init__(self, os_name: str, arch: str, version: str, releases_url: str):
        super().__init__(
            f"Binary not found for {os_name}-{arch} version {version}. "
            f"Please check releases at {releases_url}",
            details={
                "os": os_name,
                "arch": arch,
                "version": version,
                "releases_url": releases_url,
            },
        )


class ChecksumMismatchError(MemosMcpError):
    """Downloaded artifact does not match the published checksum."""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Checksum mismatch: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class ChecksumUnavailableError(MemosMcpError):
    """A checksum is required but the release does not provide one."""

    def __init__(self, binary_name: str, version: str, reason: str):
        super().__init__(
            f"No checksum available for {binary_name} {version}: {reason}",
            details={"binary_name": binary_name, "version": version, "reason": reason},
        )


class SpawnError(MemosMcpError):
    """Child process could not be started."""

    def __init__(self, binary_path: str, reason: str):
        super().__init__(
            f"Failed to spawn memos-mcp: {reason}",
            details={"binary_path": binary_path},
        )


class MemosApiError(MemosMcpError):
    """Non-success response from the Memos REST API."""

    def __init__(self, status_code: int, body: str):
        super().__init__(
            body or f"memos API error: {status_code}",
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.body = body
