"""Version control operations used by an upgrade session."""

from datetime import datetime, timedelta, timezone
from typing import List

from nodeupgrader.constants import DEFAULT_BRANCH_PREFIX
from nodeupgrader.errors import BranchDetectionFailedError, UpgraderError
from nodeupgrader.errors_catalog import actionable_error

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class GitService:
    """Thin wrapper over the git CLI."""

    def __init__(self, command_runner, logger):
        self.command_runner = command_runner
        self.logger = logger

    def current_branch(self) -> str:
        try:
            result = self.command_runner.run(
                ["git", "rev-parse", "--abbrev-ref", "HEAD"],
                check=True,
                capture_output=True,
            )
        except UpgraderError as exc:
            raise BranchDetectionFailedError(
                actionable_error("branch_detection_failed", detail=str(exc))
            ) from exc

        branch = (result.stdout or "").strip()
        if not branch:
            raise BranchDetectionFailedError(
                actionable_error("branch_detection_failed", detail="git printed no branch name")
            )
        if branch == "HEAD":
            raise BranchDetectionFailedError(
                actionable_error("branch_detection_failed", detail="HEAD is detached")
            )
        return branch

    def create_branch(self, name: str):
        try:
            self.command_runner.run(["git", "checkout", "-b", name], check=True, capture_output=True)
        except UpgraderError as exc:
            raise UpgraderError(f"{actionable_error('branch_creation_failed', branch=name)}\n{exc}") from exc
        self.logger.info("Switched to new branch: %s", name)

    def ensure_tracked(self, paths: List[str]):
        """Fail unless every path is known to git; restores depend on it."""
        untracked = []
        for path in paths:
            result = self.command_runner.run(
                ["git", "ls-files", "--error-unmatch", "--", path],
                check=False,
                capture_output=True,
                warn_on_failure=False,
            )
            if result.returncode != 0:
                untracked.append(path)

        if untracked:
            raise UpgraderError(actionable_error("untracked_manifests", paths=", ".join(untracked)))

    @staticmethod
    def work_branch_name(started_at: datetime, prefix: str = DEFAULT_BRANCH_PREFIX) -> str:
        if started_at.tzinfo is None:
            started_at = started_at.astimezone()
        millis = (started_at - _EPOCH) // timedelta(milliseconds=1)
        return f"{prefix}-{millis}"
