"""Actionable error catalog for NodeUpgrader."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "no_lockfile": {
        "what": "No supported lockfile found in {path}. Looked for: {lockfiles}.",
        "next": "Run your package manager's install once and commit the lockfile before retrying.",
    },
    "baseline_check_failed": {
        "what": "Initial checks failed. The check command was: {command}",
        "next": (
            "Make sure your checks pass before upgrading, or pass another command, "
            "e.g. `nodeupgrader 'npm test'`."
        ),
    },
    "outdated_query_failed": {
        "what": "Could not retrieve outdated packages with `{command}`.",
        "next": "Run the command manually to inspect the package manager error.",
    },
    "branch_detection_failed": {
        "what": "Failed to determine the current branch ({detail}).",
        "next": "Run NodeUpgrader inside a git checkout with a named branch checked out.",
    },
    "branch_creation_failed": {
        "what": "Could not create work branch {branch}.",
        "next": "Check `git status` and remove any existing branch with the same name.",
    },
    "untracked_manifests": {
        "what": "These files are not tracked by git: {paths}. Failed upgrades could not be restored.",
        "next": "Commit package.json and the lockfile before running NodeUpgrader.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
