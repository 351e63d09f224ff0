import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from .constants import DEFAULT_BRANCH_PREFIX, DEFAULT_CHECK_COMMAND
from .errors import BaselineCheckFailedError, UpgraderError
from .errors_catalog import actionable_error
from .models import OutdatedPackage, SessionResult
from .services.command_runner import CommandRunner
from .services.detector import detect
from .services.git import GitService
from .services.outdated import OutdatedResolver
from .services.package_managers import PackageManagerProfile, get_profile
from .services.report import ReportService
from .services.transaction import UpgradeTransactionService, split_check_command

console = Console()
logger = logging.getLogger("nodeupgrader")


class NodeUpgrader:
    def __init__(
        self,
        check_command: str = DEFAULT_CHECK_COMMAND,
        repository_root: Optional[str] = None,
        assume_yes: bool = False,
        dry_run: bool = False,
        check_timeout: Optional[float] = None,
        install_timeout: Optional[float] = None,
        branch_prefix: str = DEFAULT_BRANCH_PREFIX,
        report_file: Optional[str] = None,
        confirm: Optional[Callable[[List[OutdatedPackage]], bool]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.check_command = check_command
        self.check_cmd = split_check_command(check_command)
        self.repository_root = os.path.abspath(repository_root or os.getcwd())
        self.assume_yes = assume_yes
        self.dry_run = dry_run
        self.branch_prefix = self._normalize_branch_prefix(branch_prefix)
        self.confirm = confirm or self._ask_confirmation
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        if not os.path.isdir(self.repository_root):
            raise UpgraderError(f"Repository root is not a directory: {self.repository_root}")

        self.command_runner = CommandRunner(logger=logger, cwd=self.repository_root)
        self.git_service = GitService(command_runner=self.command_runner, logger=logger)
        self.outdated_resolver = OutdatedResolver(command_runner=self.command_runner, logger=logger)
        self.transaction_service = UpgradeTransactionService(
            command_runner=self.command_runner,
            logger=logger,
            console=console,
            install_timeout=install_timeout,
            check_timeout=check_timeout,
        )
        self.report_service = ReportService(report_file=report_file, logger=logger)

        self.profile: Optional[PackageManagerProfile] = None
        self.result: Optional[SessionResult] = None

    @staticmethod
    def _normalize_branch_prefix(prefix: str) -> str:
        clean_prefix = (prefix or "").strip().rstrip("-/")
        if not clean_prefix or clean_prefix.startswith("-") or any(c.isspace() for c in clean_prefix):
            raise UpgraderError(f"Invalid branch prefix: {prefix!r}")
        return clean_prefix

    def _build_report_metadata(self) -> Dict[str, Any]:
        return {
            "repository_root": self.repository_root,
            "package_manager": self.profile.kind.value if self.profile else None,
            "check_command": self.check_command,
            "dry_run": self.dry_run,
        }

    def _ask_confirmation(self, packages: List[OutdatedPackage]) -> bool:
        try:
            return Confirm.ask(
                "Do you want to proceed with updating these packages?",
                default=True,
                console=console,
            )
        except EOFError:
            logger.warning("No interactive input available; pass --yes to skip confirmation.")
            return False

    def detect_package_manager(self) -> PackageManagerProfile:
        kind = detect(self.repository_root)
        logger.info("Detected package manager: %s", kind.value)
        return get_profile(kind)

    def run_baseline_checks(self):
        console.print("[blue]Running initial checks...[/blue]")
        if not self.transaction_service.run_checks(self.check_cmd):
            raise BaselineCheckFailedError(
                actionable_error("baseline_check_failed", command=self.check_command)
            )
        console.print("[green]Initial checks passed.[/green]")

    def resolve_outdated(self) -> List[OutdatedPackage]:
        console.print("[blue]Checking for outdated packages...[/blue]")
        return self.outdated_resolver.resolve(self.profile)

    def present_outdated(self, packages: List[OutdatedPackage]):
        console.print(f"[yellow]Found {len(packages)} outdated packages.[/yellow]")

        table = Table(title="Outdated packages")
        for column in ("Package", "Current", "Wanted", "Latest", "Bump"):
            table.add_column(column)
        for package in packages:
            table.add_row(
                package.name,
                package.current or "-",
                package.wanted or "-",
                package.latest or "-",
                package.bump or "-",
            )
        console.print(table)

    def upgrade_packages(self, packages: List[OutdatedPackage]):
        total = len(packages)
        for index, package in enumerate(packages, start=1):
            console.print(f"[bold]({index}/{total}) {package.name}[/bold]")
            outcome = self.transaction_service.upgrade(self.profile, package, self.check_cmd)
            self.result.record(outcome)
            self.report_service.add_outcome(outcome)

    def print_summary(self):
        console.print("[green]Finished attempting updates.[/green]")
        console.print(
            f"Upgraded: {len(self.result.upgraded)}  Reverted: {len(self.result.reverted)}"
        )
        if self.result.reverted:
            console.print(f"[yellow]Reverted: {', '.join(self.result.reverted)}[/yellow]")
        if self.result.skipped:
            console.print(f"[yellow]Skipped (not installed): {', '.join(self.result.skipped)}[/yellow]")
        console.print(
            f"[blue]You're now on branch {self.result.work_branch} "
            f"(you were on {self.result.initial_branch})[/blue]"
        )
        console.print("[yellow]Review changes and merge if satisfied.[/yellow]")

    def run(self) -> int:
        exit_code = 1
        report_status = "failed"
        report_error: Optional[str] = None
        started_at = self.clock()

        try:
            logger.info("Starting NodeUpgrader in %s", self.repository_root)

            self.profile = self.detect_package_manager()
            self.result = SessionResult(
                package_manager=self.profile.kind,
                check_command=self.check_command,
            )
            self.report_service.start_session(self._build_report_metadata())

            self.run_baseline_checks()

            outdated = self.resolve_outdated()
            self.report_service.set_outdated(outdated)
            if not outdated:
                console.print("[green]All dependencies are up to date.[/green]")
                report_status = "up_to_date"
                exit_code = 0
                return exit_code

            self.present_outdated(outdated)

            if self.dry_run:
                console.print("[blue]Dry run: no packages were changed.[/blue]")
                report_status = "dry_run"
                exit_code = 0
                return exit_code

            if not (self.assume_yes or self.confirm(outdated)):
                console.print("[blue]Update process aborted.[/blue]")
                report_status = "declined"
                exit_code = 0
                return exit_code

            initial_branch = self.git_service.current_branch()
            self.git_service.ensure_tracked(self.profile.manifest_files)
            work_branch = GitService.work_branch_name(started_at, prefix=self.branch_prefix)
            self.git_service.create_branch(work_branch)
            console.print(f"[green]Switched to new branch: {work_branch}[/green]")
            self.result.initial_branch = initial_branch
            self.result.work_branch = work_branch
            self.report_service.set_branches(initial=initial_branch, work=work_branch)

            self.upgrade_packages(outdated)
            self.print_summary()

            report_status = "success"
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            report_status = "aborted"
            report_error = "Operation cancelled by user."
            exit_code = 1
            return exit_code
        except BaselineCheckFailedError as exc:
            console.print(f"[bold red]{exc}[/bold red]")
            logger.error(str(exc))
            report_error = str(exc)
            exit_code = 1
            return exit_code
        except UpgraderError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            report_error = str(exc)
            exit_code = 1
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            report_error = str(exc)
            exit_code = 1
            return exit_code
        finally:
            self.report_service.finalize(report_status, error=report_error)
