import pytest

from nodeupgrader.errors import UpgraderError
from nodeupgrader.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text(
        "check_command: npm run test:ci\ncheck-timeout: 300\nyes: true\n",
        encoding="utf-8",
    )

    loaded = ConfigLoader().load(str(config_file))

    assert loaded == {"check_command": "npm run test:ci", "check_timeout": 300, "yes": True}


@pytest.mark.parametrize("content, expected", [("yes: false\n", False), ("yes: yes\n", True)])
def test_config_loader_reads_yes_key_as_option_name(tmp_path, content, expected):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text(content, encoding="utf-8")

    assert ConfigLoader().load(str(config_file)) == {"yes": expected}


def test_config_loader_loads_readme_example(tmp_path):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text(
        "check_command: npm run test:ci\n"
        "check_timeout: 600\n"
        "install_timeout: 300\n"
        "branch_prefix: chore/deps\n"
        "report_file: upgrade-report.json\n"
        "yes: false\n"
        "verbose: false\n",
        encoding="utf-8",
    )

    loaded = ConfigLoader().load(str(config_file))

    assert loaded["yes"] is False
    assert loaded["branch_prefix"] == "chore/deps"


def test_config_loader_rejects_no_key(tmp_path):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text("no: true\n", encoding="utf-8")

    with pytest.raises(UpgraderError, match="Unknown configuration keys: no"):
        ConfigLoader().load(str(config_file))


def test_config_loader_returns_empty_for_missing_path_or_empty_file(tmp_path):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text("", encoding="utf-8")

    loader = ConfigLoader()

    assert loader.load(None) == {}
    assert loader.load(str(config_file)) == {}


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    with pytest.raises(UpgraderError, match="Unknown configuration keys: unknown_key"):
        ConfigLoader().load(str(config_file))


@pytest.mark.parametrize(
    "content, message",
    [
        ("check_timeout: yes\n", "must be int or float"),
        ("check_timeout: 0\n", "greater than zero"),
        ("dry_run: 'sometimes'\n", "must be bool"),
        ("check_command: [npm, test]\n", "must be str"),
    ],
)
def test_config_loader_rejects_wrong_value_types(tmp_path, content, message):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(UpgraderError, match=message):
        ConfigLoader().load(str(config_file))


def test_config_loader_rejects_non_mapping_root(tmp_path):
    config_file = tmp_path / ".nodeupgrader.yml"
    config_file.write_text("- npm test\n", encoding="utf-8")

    with pytest.raises(UpgraderError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))


def test_config_loader_reports_missing_file(tmp_path):
    with pytest.raises(UpgraderError, match="Config file not found"):
        ConfigLoader().load(str(tmp_path / "missing.yml"))


def test_find_default_looks_in_directory(tmp_path):
    loader = ConfigLoader()

    assert loader.find_default(str(tmp_path)) is None

    (tmp_path / ".nodeupgrader.yml").write_text("yes: true\n", encoding="utf-8")

    assert loader.find_default(str(tmp_path)) == str(tmp_path / ".nodeupgrader.yml")
