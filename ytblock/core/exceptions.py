"""Exception hierarchy for ytblock.

Configuration and setup errors abort a run before any file is opened.
``SourceUnreadable`` is file-scoped: the scanner that hits it stops reading
that one file and the rest of the scan carries on.
"""

from typing import Any


class YtblockError(Exception):
    """Base exception for all ytblock errors."""

    error_code: str = "YTBLOCK_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class ConfigurationError(YtblockError):
    """Configuration is missing, unreadable or invalid."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, message: str):
        super().__init__(f"Configuration error for {setting}: {message}", details={"setting": setting})


class ScanSetupError(YtblockError):
    """The scan could not start (e.g. the logs directory is unreadable)."""

    error_code = "SCAN_SETUP_ERROR"

    def __init__(self, directory: str, reason: str):
        super().__init__(
            f"could not read files from the configured directory ({directory}): {reason}",
            details={"directory": directory, "reason": reason},
        )


class SourceUnreadable(YtblockError):
    """A log file could not be opened, read or decompressed."""

    error_code = "SOURCE_UNREADABLE"

    def __init__(self, path: str, reason: str):
        super().__init__(f"unreadable file ({path}): {reason}", details={"path": path, "reason": reason})
        self.path = path
        self.reason = reason


class BlocklistCommandError(YtblockError):
    """The external blocklist command could not be run."""

    error_code = "BLOCKLIST_COMMAND_ERROR"
