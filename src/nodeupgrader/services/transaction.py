"""Per-package install, validate, commit-or-revert transactions."""

import shlex
import time
from typing import List, Optional

from nodeupgrader.errors import CommandTimeoutError, UpgraderError
from nodeupgrader.models import OutdatedPackage, TransactionOutcome, TransactionState


def split_check_command(check_command: str) -> List[str]:
    """Split a check command into executable and arguments for a shell-less run."""
    try:
        parts = shlex.split(check_command or "")
    except ValueError as exc:
        raise UpgraderError(f"Could not parse check command {check_command!r}: {exc}") from exc

    if not parts:
        raise UpgraderError("The check command must not be empty.")
    return parts


class UpgradeTransactionService:
    """Upgrades one package at a time and undoes the upgrade when checks fail.

    A transaction walks PENDING -> INSTALLING -> VALIDATING and ends either
    COMMITTED (checks passed, manifest and lockfile staged in git so the next
    package builds on them) or REVERTED (manifest and lockfile restored from the
    index, modules reinstalled). A package whose install command cannot be built
    goes straight from PENDING to SKIPPED.
    """

    def __init__(
        self,
        command_runner,
        logger,
        console,
        install_timeout: Optional[float] = None,
        check_timeout: Optional[float] = None,
    ):
        self.command_runner = command_runner
        self.logger = logger
        self.console = console
        self.install_timeout = install_timeout
        self.check_timeout = check_timeout

    def run_checks(self, check_cmd: List[str]) -> bool:
        try:
            self.command_runner.run(
                check_cmd,
                check=True,
                capture_output=False,
                timeout=self.check_timeout,
            )
        except CommandTimeoutError as exc:
            self.logger.warning("Checks did not finish in time: %s", exc)
            return False
        except UpgraderError as exc:
            self.logger.debug("Checks failed: %s", exc)
            return False
        return True

    def upgrade(self, profile, package: OutdatedPackage, check_cmd: List[str]) -> TransactionOutcome:
        started = time.monotonic()
        history = [TransactionState.PENDING]

        try:
            install_cmd = profile.install_latest_cmd(package.name)
        except UpgraderError as exc:
            # nothing was installed, so there is nothing to validate or revert
            self.console.print(f"[yellow]Skipping {package.name}: {exc}[/yellow]")
            self.logger.warning("Skipping %s: %s", package.name, exc)
            history.append(TransactionState.SKIPPED)
            return self._outcome(package, history, started)

        history.append(TransactionState.INSTALLING)
        self.console.print(f"[blue]Updating {package.name}...[/blue]")
        self._install(install_cmd, package)

        history.append(TransactionState.VALIDATING)
        self.console.print(f"[blue]Running checks for {package.name}...[/blue]")

        if self.run_checks(check_cmd):
            self.commit(profile)
            history.append(TransactionState.COMMITTED)
            self.console.print(f"[green]{package.name} updated successfully.[/green]")
            self.logger.info("%s upgraded.", package.name)
        else:
            self.console.print(f"[red]{package.name} failed checks, reverting...[/red]")
            self.logger.warning("%s failed checks, reverting.", package.name)
            self.revert(profile)
            history.append(TransactionState.REVERTED)

        return self._outcome(package, history, started)

    def commit(self, profile):
        """Stage the manifest and lockfile so a later revert restores to them."""
        try:
            self.command_runner.run(profile.stage_manifests_cmd(), check=True, capture_output=True)
        except UpgraderError as exc:
            self.logger.warning("Could not stage upgraded manifests; a later revert may undo them: %s", exc)

    def revert(self, profile):
        # Both steps always run, in order; a failing restore must not skip the reinstall.
        for cmd in (profile.restore_manifests_cmd(), profile.reinstall_all_cmd()):
            try:
                self.command_runner.run(cmd, check=True, capture_output=False)
            except UpgraderError as exc:
                self.logger.warning("Revert step failed, continuing: %s", exc)

    def _install(self, install_cmd: List[str], package: OutdatedPackage):
        # Install failures fall through to the checks.
        try:
            self.command_runner.run(
                install_cmd,
                check=True,
                capture_output=False,
                timeout=self.install_timeout,
            )
        except UpgraderError as exc:
            self.logger.warning("Install of %s failed: %s", package.name, exc)

    @staticmethod
    def _outcome(package: OutdatedPackage, history: List[TransactionState], started: float) -> TransactionOutcome:
        return TransactionOutcome(
            package=package,
            state=history[-1],
            history=tuple(history),
            duration_seconds=round(time.monotonic() - started, 3),
        )
