"""Subprocess execution service for NodeUpgrader."""

import shlex
import subprocess
from typing import List, Optional

from nodeupgrader.errors import CommandFailedError, CommandTimeoutError, UpgraderError


class CommandRunner:
    """Runs external commands, one attempt each, with consistent error handling."""

    def __init__(self, logger, cwd: Optional[str] = None, default_timeout: Optional[float] = None):
        self.logger = logger
        self.cwd = cwd
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        warn_on_failure: bool = True,
    ) -> subprocess.CompletedProcess:
        if not cmd or not all(isinstance(part, str) for part in cmd) or not cmd[0]:
            raise UpgraderError(f"Invalid command: {cmd!r}")

        cmd_str = shlex.join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
                cwd=self.cwd,
            )
        except FileNotFoundError as exc:
            raise UpgraderError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeoutError(
                f"Command timed out after {effective_timeout}s: {cmd_str}",
                command=cmd_str,
                timeout=effective_timeout,
            ) from exc
        except OSError as exc:
            raise UpgraderError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise CommandFailedError(
                message,
                command=cmd_str,
                returncode=result.returncode,
                stderr=stderr,
            )

        if warn_on_failure:
            self.logger.warning(message)
        else:
            self.logger.debug(message)
        return result
