"""Per package manager command templates and outdated report parsers."""

import json
from typing import Any, Dict, List, Optional

from nodeupgrader.constants import MANIFEST_FILE, NPM_LOCKFILE, PNPM_LOCKFILE, YARN_LOCKFILE
from nodeupgrader.errors import (
    MalformedOutdatedOutputError,
    OutdatedQueryFailedError,
    UpgraderError,
)
from nodeupgrader.models import OutdatedPackage, PackageManagerKind


class PackageManagerProfile:
    """Commands one package manager needs for the upgrade loop.

    Subclasses only differ in command shapes and in how the outdated report is
    laid out; callers never branch on ``kind`` themselves.
    """

    kind: PackageManagerKind
    lockfile: str

    def outdated_cmd(self) -> List[str]:
        raise NotImplementedError

    def install_latest_cmd(self, name: str) -> List[str]:
        raise NotImplementedError

    def parse_outdated(self, text: str) -> List[OutdatedPackage]:
        raise NotImplementedError

    def stage_manifests_cmd(self) -> List[str]:
        return ["git", "add", "--", MANIFEST_FILE, self.lockfile]

    def restore_manifests_cmd(self) -> List[str]:
        # restores from the index, so staged upgrades survive
        return ["git", "restore", "--", MANIFEST_FILE, self.lockfile]

    def reinstall_all_cmd(self) -> List[str]:
        return [self.kind.value, "install"]

    @property
    def manifest_files(self) -> List[str]:
        return [MANIFEST_FILE, self.lockfile]

    @staticmethod
    def _validate_package_name(name: str) -> str:
        clean_name = (name or "").strip()
        if not clean_name or clean_name.startswith("-") or any(c.isspace() for c in clean_name):
            raise UpgraderError(f"Refusing to install invalid package name: {name!r}")
        return clean_name

    def _load_json_object(self, text: str) -> Dict[str, Any]:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedOutdatedOutputError(
                f"Malformed JSON in {self.kind.value} outdated output: {exc}"
            ) from exc

        if not isinstance(payload, dict):
            raise MalformedOutdatedOutputError(
                f"Expected a JSON object from {self.kind.value} outdated, "
                f"got {type(payload).__name__}."
            )

        error = payload.get("error")
        if isinstance(error, dict) and ("code" in error or "summary" in error):
            detail = error.get("summary") or error.get("code")
            raise OutdatedQueryFailedError(f"{self.kind.value} outdated reported an error: {detail}")

        return payload

    def _packages_from_mapping(self, payload: Dict[str, Any]) -> List[OutdatedPackage]:
        packages = []
        for name, info in payload.items():
            # npm reports one entry per workspace when a package is outdated in several
            if isinstance(info, list):
                info = info[0] if info else {}
            if not isinstance(info, dict):
                raise MalformedOutdatedOutputError(
                    f"Unexpected entry for '{name}' in {self.kind.value} outdated output."
                )
            packages.append(
                OutdatedPackage(
                    name=name,
                    current=_as_optional_str(info.get("current")),
                    wanted=_as_optional_str(info.get("wanted")),
                    latest=_as_optional_str(info.get("latest")),
                    dependency_type=_as_optional_str(info.get("dependencyType") or info.get("type")),
                )
            )
        return packages


class NpmProfile(PackageManagerProfile):
    kind = PackageManagerKind.NPM
    lockfile = NPM_LOCKFILE

    def outdated_cmd(self) -> List[str]:
        return ["npm", "outdated", "--json"]

    def install_latest_cmd(self, name: str) -> List[str]:
        return ["npm", "install", f"{self._validate_package_name(name)}@latest"]

    def parse_outdated(self, text: str) -> List[OutdatedPackage]:
        return self._packages_from_mapping(self._load_json_object(text))


class PnpmProfile(PackageManagerProfile):
    kind = PackageManagerKind.PNPM
    lockfile = PNPM_LOCKFILE

    def outdated_cmd(self) -> List[str]:
        return ["pnpm", "outdated", "--format", "json"]

    def install_latest_cmd(self, name: str) -> List[str]:
        return ["pnpm", "update", self._validate_package_name(name), "--latest"]

    def parse_outdated(self, text: str) -> List[OutdatedPackage]:
        return self._packages_from_mapping(self._load_json_object(text))


class YarnProfile(PackageManagerProfile):
    """Yarn classic; ``--json`` emits one JSON record per line."""

    kind = PackageManagerKind.YARN
    lockfile = YARN_LOCKFILE

    def outdated_cmd(self) -> List[str]:
        return ["yarn", "outdated", "--json"]

    def install_latest_cmd(self, name: str) -> List[str]:
        return ["yarn", "upgrade", self._validate_package_name(name), "--latest"]

    def parse_outdated(self, text: str) -> List[OutdatedPackage]:
        packages: List[OutdatedPackage] = []
        errors: List[str] = []
        saw_table = False

        for line_number, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                raise MalformedOutdatedOutputError(
                    f"Malformed JSON on line {line_number} of yarn outdated output: {exc}"
                ) from exc
            if not isinstance(record, dict):
                raise MalformedOutdatedOutputError(
                    f"Unexpected record on line {line_number} of yarn outdated output."
                )

            record_type = record.get("type")
            if record_type == "error":
                errors.append(str(record.get("data", "")))
            elif record_type == "table":
                saw_table = True
                packages.extend(self._packages_from_table(record.get("data")))

        if errors and not saw_table:
            raise OutdatedQueryFailedError(f"yarn outdated reported an error: {'; '.join(errors)}")

        return packages

    def _packages_from_table(self, data: Any) -> List[OutdatedPackage]:
        if not isinstance(data, dict):
            raise MalformedOutdatedOutputError("yarn outdated table record has no data.")

        head = data.get("head")
        body = data.get("body")
        if not isinstance(head, list) or not isinstance(body, list):
            raise MalformedOutdatedOutputError("yarn outdated table is missing head or body.")

        columns = [str(column).lower() for column in head]
        if "package" not in columns:
            raise MalformedOutdatedOutputError("yarn outdated table has no Package column.")

        packages = []
        for row in body:
            if not isinstance(row, list) or len(row) != len(columns):
                raise MalformedOutdatedOutputError(f"Unexpected yarn outdated row: {row!r}")
            values = dict(zip(columns, row))
            packages.append(
                OutdatedPackage(
                    name=str(values["package"]),
                    current=_as_optional_str(values.get("current")),
                    wanted=_as_optional_str(values.get("wanted")),
                    latest=_as_optional_str(values.get("latest")),
                    dependency_type=_as_optional_str(values.get("package type")),
                )
            )
        return packages


_PROFILES = {
    PackageManagerKind.NPM: NpmProfile,
    PackageManagerKind.YARN: YarnProfile,
    PackageManagerKind.PNPM: PnpmProfile,
}


def get_profile(kind: PackageManagerKind) -> PackageManagerProfile:
    try:
        return _PROFILES[PackageManagerKind(kind)]()
    except (KeyError, ValueError) as exc:
        raise UpgraderError(f"Unsupported package manager: {kind}") from exc


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
