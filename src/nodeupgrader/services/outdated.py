"""Outdated package resolution service."""

import shlex
from typing import List

from nodeupgrader.errors import (
    MalformedOutdatedOutputError,
    OutdatedQueryFailedError,
    UpgraderError,
)
from nodeupgrader.errors_catalog import actionable_error
from nodeupgrader.models import OutdatedPackage, OutdatedQueryResult, QueryStatus


class OutdatedResolver:
    """Turns a package manager's outdated report into an ordered package list.

    Every supported manager exits non-zero when something is outdated and
    still prints the report on stdout, so the exit status alone means little:
    a report that parses wins, and only a failure without a report is an error.
    """

    def __init__(self, command_runner, logger):
        self.command_runner = command_runner
        self.logger = logger

    def query(self, profile) -> OutdatedQueryResult:
        cmd = profile.outdated_cmd()
        cmd_str = shlex.join(cmd)

        try:
            result = self.command_runner.run(
                cmd,
                check=False,
                capture_output=True,
                warn_on_failure=False,
            )
        except UpgraderError as exc:
            return OutdatedQueryResult.failed(f"{exc}")

        output = (result.stdout or "").strip()
        if not output:
            if result.returncode == 0:
                return OutdatedQueryResult.empty()

            message = actionable_error("outdated_query_failed", command=cmd_str)
            stderr = (result.stderr or "").strip()
            if stderr:
                message = f"{message}\n{stderr}"
            return OutdatedQueryResult.failed(message)

        try:
            packages = profile.parse_outdated(output)
        except OutdatedQueryFailedError as exc:
            return OutdatedQueryResult.failed(f"{exc} (command: {cmd_str})")
        except MalformedOutdatedOutputError as exc:
            self.logger.warning("%s Treating the outdated set as empty.", exc)
            return OutdatedQueryResult.empty()

        if result.returncode != 0:
            self.logger.debug(
                "%s exited with %s while reporting %s outdated package(s).",
                cmd_str,
                result.returncode,
                len(packages),
            )
        return OutdatedQueryResult.found(packages)

    def resolve(self, profile) -> List[OutdatedPackage]:
        result = self.query(profile)
        if result.status == QueryStatus.ERROR:
            self.logger.error(result.error)
            return []
        return list(result.packages)
