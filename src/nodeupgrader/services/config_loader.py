"""Configuration loader for NodeUpgrader."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from nodeupgrader.constants import DEFAULT_CONFIG_FILE
from nodeupgrader.errors import UpgraderError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults.

    Keys may be written with dashes (``check-timeout``) or underscores; values
    are type-checked here so a typo in the file fails before anything runs.
    """

    KEY_TYPES = {
        "check_command": (str,),
        "verbose": (bool,),
        "log_file": (str,),
        "yes": (bool,),
        "dry_run": (bool,),
        "check_timeout": (int, float),
        "install_timeout": (int, float),
        "branch_prefix": (str,),
        "report_file": (str,),
    }

    def find_default(self, directory: str) -> Optional[str]:
        candidate = os.path.join(directory, DEFAULT_CONFIG_FILE)
        if os.path.exists(candidate):
            return candidate
        return None

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.is_file():
            raise UpgraderError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise UpgraderError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise UpgraderError("Config file must contain a YAML mapping at the root.")

        values = {self._normalize_key(key): value for key, value in parsed.items()}

        unknown = sorted(set(values) - set(self.KEY_TYPES))
        if unknown:
            raise UpgraderError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key, value in values.items():
            self._check_type(key, value)

        return values

    @staticmethod
    def _normalize_key(key: Any) -> str:
        # YAML 1.1 resolves a bare `yes:` key to True
        if isinstance(key, bool):
            return "yes" if key else "no"
        return str(key).replace("-", "_")

    def _check_type(self, key: str, value: Any):
        if value is None:
            return

        expected = self.KEY_TYPES[key]
        # bool is an int subclass; `check_timeout: yes` is not a number
        if isinstance(value, bool) and bool not in expected:
            valid = False
        else:
            valid = isinstance(value, expected)

        if not valid:
            names = " or ".join(kind.__name__ for kind in expected)
            raise UpgraderError(
                f"Configuration key '{key}' must be {names}, got {type(value).__name__}."
            )

        if key.endswith("_timeout") and value <= 0:
            raise UpgraderError(f"Configuration key '{key}' must be greater than zero.")
