import json

import pytest

from nodeupgrader.errors import (
    MalformedOutdatedOutputError,
    OutdatedQueryFailedError,
    UpgraderError,
)
from nodeupgrader.models import PackageManagerKind
from nodeupgrader.services.package_managers import (
    NpmProfile,
    PnpmProfile,
    YarnProfile,
    get_profile,
)


def test_get_profile_returns_one_profile_per_kind():
    assert isinstance(get_profile(PackageManagerKind.NPM), NpmProfile)
    assert isinstance(get_profile(PackageManagerKind.YARN), YarnProfile)
    assert isinstance(get_profile(PackageManagerKind.PNPM), PnpmProfile)
    assert isinstance(get_profile("pnpm"), PnpmProfile)


def test_get_profile_rejects_unknown_manager():
    with pytest.raises(UpgraderError, match="Unsupported package manager"):
        get_profile("bun")


def test_npm_commands():
    profile = NpmProfile()

    assert profile.outdated_cmd() == ["npm", "outdated", "--json"]
    assert profile.install_latest_cmd("lodash") == ["npm", "install", "lodash@latest"]
    assert profile.install_latest_cmd("@types/node") == ["npm", "install", "@types/node@latest"]
    assert profile.restore_manifests_cmd() == [
        "git",
        "restore",
        "--",
        "package.json",
        "package-lock.json",
    ]
    assert profile.stage_manifests_cmd() == ["git", "add", "--", "package.json", "package-lock.json"]
    assert profile.reinstall_all_cmd() == ["npm", "install"]


def test_yarn_commands():
    profile = YarnProfile()

    assert profile.outdated_cmd() == ["yarn", "outdated", "--json"]
    assert profile.install_latest_cmd("lodash") == ["yarn", "upgrade", "lodash", "--latest"]
    assert profile.restore_manifests_cmd()[-2:] == ["package.json", "yarn.lock"]
    assert profile.reinstall_all_cmd() == ["yarn", "install"]


def test_pnpm_commands():
    profile = PnpmProfile()

    assert profile.outdated_cmd() == ["pnpm", "outdated", "--format", "json"]
    assert profile.install_latest_cmd("lodash") == ["pnpm", "update", "lodash", "--latest"]
    assert profile.restore_manifests_cmd()[-2:] == ["package.json", "pnpm-lock.yaml"]
    assert profile.stage_manifests_cmd()[-2:] == ["package.json", "pnpm-lock.yaml"]
    assert profile.reinstall_all_cmd() == ["pnpm", "install"]


@pytest.mark.parametrize("name", ["", "   ", "--registry=http://evil", "left pad"])
def test_install_command_rejects_unsafe_names(name):
    with pytest.raises(UpgraderError, match="invalid package name"):
        NpmProfile().install_latest_cmd(name)


def test_npm_parse_keeps_report_order_and_versions():
    payload = json.dumps(
        {
            "react": {"current": "17.0.2", "wanted": "17.0.2", "latest": "18.2.0"},
            "lodash": {"current": "4.17.20", "wanted": "4.17.21", "latest": "4.17.21"},
        }
    )

    packages = NpmProfile().parse_outdated(payload)

    assert [package.name for package in packages] == ["react", "lodash"]
    assert packages[1].current == "4.17.20"
    assert packages[1].latest == "4.17.21"
    assert packages[0].bump == "major"
    assert packages[1].bump == "patch"


def test_npm_parse_takes_first_workspace_entry():
    payload = json.dumps(
        {"chalk": [{"current": "4.1.0", "latest": "5.3.0"}, {"current": "4.0.0", "latest": "5.3.0"}]}
    )

    packages = NpmProfile().parse_outdated(payload)

    assert packages[0].name == "chalk"
    assert packages[0].current == "4.1.0"


def test_npm_parse_raises_on_error_payload():
    payload = json.dumps({"error": {"code": "ENOTFOUND", "summary": "request failed"}})

    with pytest.raises(OutdatedQueryFailedError, match="request failed"):
        NpmProfile().parse_outdated(payload)


@pytest.mark.parametrize("payload", ["not json", "[1, 2]", '{"lodash": "4.17.21"}'])
def test_npm_parse_rejects_malformed_payload(payload):
    with pytest.raises(MalformedOutdatedOutputError):
        NpmProfile().parse_outdated(payload)


def test_pnpm_parse_reads_dependency_type():
    payload = json.dumps(
        {
            "typescript": {
                "current": "5.0.4",
                "latest": "5.4.5",
                "wanted": "5.0.4",
                "isDeprecated": False,
                "dependencyType": "devDependencies",
            }
        }
    )

    packages = PnpmProfile().parse_outdated(payload)

    assert packages[0].name == "typescript"
    assert packages[0].dependency_type == "devDependencies"
    assert packages[0].bump == "minor"


def _yarn_output(*records):
    return "\n".join(json.dumps(record) for record in records)


def test_yarn_parse_reads_table_record():
    output = _yarn_output(
        {"type": "info", "data": "Color legend : ..."},
        {
            "type": "table",
            "data": {
                "head": ["Package", "Current", "Wanted", "Latest", "Package Type", "URL"],
                "body": [
                    ["lodash", "4.17.20", "4.17.21", "4.17.21", "dependencies", "https://lodash.com"],
                    ["jest", "28.1.0", "28.1.3", "29.7.0", "devDependencies", "https://jestjs.io"],
                ],
            },
        },
    )

    packages = YarnProfile().parse_outdated(output)

    assert [package.name for package in packages] == ["lodash", "jest"]
    assert packages[0].wanted == "4.17.21"
    assert packages[1].dependency_type == "devDependencies"


def test_yarn_parse_without_table_is_empty():
    output = _yarn_output({"type": "info", "data": "Color legend : ..."})

    assert YarnProfile().parse_outdated(output) == []


def test_yarn_parse_raises_on_error_record():
    output = _yarn_output({"type": "error", "data": "Outdated lockfile."})

    with pytest.raises(OutdatedQueryFailedError, match="Outdated lockfile"):
        YarnProfile().parse_outdated(output)


def test_yarn_parse_rejects_broken_line():
    output = '{"type": "info", "data": "ok"}\n{"type": "table", '

    with pytest.raises(MalformedOutdatedOutputError, match="line 2"):
        YarnProfile().parse_outdated(output)


def test_yarn_parse_rejects_table_without_package_column():
    output = _yarn_output({"type": "table", "data": {"head": ["Name"], "body": [["lodash"]]}})

    with pytest.raises(MalformedOutdatedOutputError, match="Package column"):
        YarnProfile().parse_outdated(output)
