"""Package manager detection from lockfile presence."""

from pathlib import Path
from typing import Tuple, Union

from nodeupgrader.constants import NPM_LOCKFILE, PNPM_LOCKFILE, YARN_LOCKFILE
from nodeupgrader.errors import NoLockfileFoundError
from nodeupgrader.errors_catalog import actionable_error
from nodeupgrader.models import PackageManagerKind

# First match wins. Keep this order stable so repositories carrying several
# lockfiles always resolve to the same manager.
LOCKFILE_PRECEDENCE: Tuple[Tuple[str, PackageManagerKind], ...] = (
    (YARN_LOCKFILE, PackageManagerKind.YARN),
    (PNPM_LOCKFILE, PackageManagerKind.PNPM),
    (NPM_LOCKFILE, PackageManagerKind.NPM),
)


def detect(repository_root: Union[str, Path]) -> PackageManagerKind:
    root = Path(repository_root)
    for lockfile, kind in LOCKFILE_PRECEDENCE:
        if (root / lockfile).is_file():
            return kind

    raise NoLockfileFoundError(
        actionable_error(
            "no_lockfile",
            path=str(root),
            lockfiles=", ".join(name for name, _ in LOCKFILE_PRECEDENCE),
        )
    )
