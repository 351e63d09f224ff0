"""Domain errors for NodeUpgrader."""

from typing import Optional


class UpgraderError(RuntimeError):
    """Raised when the upgrade session cannot continue safely."""


class CommandFailedError(UpgraderError):
    """An external command exited with a non-zero status."""

    def __init__(self, message: str, command: str, returncode: int, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeoutError(UpgraderError):
    """An external command did not finish within its timeout."""

    def __init__(self, message: str, command: str, timeout: Optional[float]):
        super().__init__(message)
        self.command = command
        self.timeout = timeout


class NoLockfileFoundError(UpgraderError):
    """No supported lockfile exists in the repository root."""


class BaselineCheckFailedError(UpgraderError):
    """The check command fails before any package is touched."""


class OutdatedQueryFailedError(UpgraderError):
    """The package manager could not report outdated packages."""


class MalformedOutdatedOutputError(UpgraderError):
    """The outdated report was present but could not be parsed."""


class BranchDetectionFailedError(UpgraderError):
    """The current version-control branch could not be determined."""
