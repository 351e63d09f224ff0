"""Shared constants for NodeUpgrader."""

DEFAULT_CHECK_COMMAND = "npm test"
DEFAULT_BRANCH_PREFIX = "update-deps"
DEFAULT_CONFIG_FILE = ".nodeupgrader.yml"

MANIFEST_FILE = "package.json"
NPM_LOCKFILE = "package-lock.json"
YARN_LOCKFILE = "yarn.lock"
PNPM_LOCKFILE = "pnpm-lock.yaml"
