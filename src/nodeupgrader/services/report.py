"""Session report generation service."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from nodeupgrader.models import OutdatedPackage, TransactionOutcome, TransactionState

_SUMMARY_KEYS = {
    TransactionState.COMMITTED: "upgraded",
    TransactionState.REVERTED: "reverted",
    TransactionState.SKIPPED: "skipped",
}


class ReportService:
    """Collects session metadata and per-package outcomes into a JSON report.

    With no ``report_file`` the report is still collected in memory but never
    written.
    """

    def __init__(self, report_file: Optional[str], logger):
        self.report_file = report_file
        self.logger = logger
        self.report: Dict[str, Any] = {
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "metadata": {},
            "branches": {
                "initial": None,
                "work": None,
            },
            "outdated": [],
            "packages": [],
            "summary": {
                "upgraded": 0,
                "reverted": 0,
                "skipped": 0,
            },
            "error": None,
        }

    def start_session(self, metadata: Dict[str, Any]):
        self.report["status"] = "running"
        self.report["started_at"] = self._now()
        self.report["metadata"] = metadata
        self.write()

    def set_outdated(self, packages):
        self.report["outdated"] = [self._package_entry(package) for package in packages]
        self.write()

    def set_branches(self, initial: Optional[str], work: Optional[str]):
        self.report["branches"]["initial"] = initial
        self.report["branches"]["work"] = work
        self.write()

    def add_outcome(self, outcome: TransactionOutcome):
        entry = self._package_entry(outcome.package)
        entry.update(
            {
                "state": outcome.state.value,
                "history": [state.value for state in outcome.history],
                "duration_seconds": outcome.duration_seconds,
            }
        )
        self.report["packages"].append(entry)
        self.report["summary"][_SUMMARY_KEYS[outcome.state]] += 1
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.report["status"] = status
        self.report["finished_at"] = self._now()
        if self.report.get("started_at"):
            started_at = datetime.fromisoformat(self.report["started_at"])
            finished_at = datetime.fromisoformat(self.report["finished_at"])
            self.report["duration_seconds"] = (finished_at - started_at).total_seconds()
        self.report["error"] = error
        self.write()

    def write(self):
        if not self.report_file:
            return

        report_dir = os.path.dirname(self.report_file) or "."
        try:
            os.makedirs(report_dir, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix="session-report-", suffix=".json", dir=report_dir)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.report, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.report_file)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    @staticmethod
    def _package_entry(package: OutdatedPackage) -> Dict[str, Any]:
        return {
            "name": package.name,
            "current": package.current,
            "wanted": package.wanted,
            "latest": package.latest,
            "bump": package.bump,
        }

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
