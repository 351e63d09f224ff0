"""Shared domain models for NodeUpgrader."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from packaging.version import InvalidVersion, Version


class PackageManagerKind(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"


class QueryStatus(str, Enum):
    EMPTY = "empty"
    FOUND = "found"
    ERROR = "error"


class TransactionState(str, Enum):
    PENDING = "pending"
    INSTALLING = "installing"
    VALIDATING = "validating"
    COMMITTED = "committed"
    REVERTED = "reverted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class OutdatedPackage:
    """One dependency reported as outdated. Only ``name`` drives the upgrade."""

    name: str
    current: Optional[str] = None
    wanted: Optional[str] = None
    latest: Optional[str] = None
    dependency_type: Optional[str] = None

    @property
    def bump(self) -> Optional[str]:
        """Classify the current -> latest jump as major, minor or patch."""
        if not self.current or not self.latest:
            return None
        try:
            current = Version(self.current)
            latest = Version(self.latest)
        except InvalidVersion:
            return None

        if latest <= current:
            return None
        if latest.major != current.major:
            return "major"
        if latest.minor != current.minor:
            return "minor"
        return "patch"


@dataclass(frozen=True)
class OutdatedQueryResult:
    """Result of one outdated query: nothing to do, packages found, or a failure."""

    status: QueryStatus
    packages: Tuple[OutdatedPackage, ...] = ()
    error: Optional[str] = None

    @classmethod
    def empty(cls) -> "OutdatedQueryResult":
        return cls(status=QueryStatus.EMPTY)

    @classmethod
    def found(cls, packages: List[OutdatedPackage]) -> "OutdatedQueryResult":
        if not packages:
            return cls.empty()
        return cls(status=QueryStatus.FOUND, packages=tuple(packages))

    @classmethod
    def failed(cls, error: str) -> "OutdatedQueryResult":
        return cls(status=QueryStatus.ERROR, error=error)


@dataclass(frozen=True)
class TransactionOutcome:
    package: OutdatedPackage
    state: TransactionState
    history: Tuple[TransactionState, ...]
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state == TransactionState.COMMITTED


@dataclass
class SessionResult:
    """Aggregated outcomes of one upgrade session; only ever appended to."""

    package_manager: PackageManagerKind
    check_command: str
    initial_branch: Optional[str] = None
    work_branch: Optional[str] = None
    outcomes: List[TransactionOutcome] = field(default_factory=list)

    def record(self, outcome: TransactionOutcome):
        self.outcomes.append(outcome)

    @property
    def upgraded(self) -> List[str]:
        return [outcome.package.name for outcome in self.outcomes if outcome.succeeded]

    @property
    def reverted(self) -> List[str]:
        return self._names(TransactionState.REVERTED)

    @property
    def skipped(self) -> List[str]:
        return self._names(TransactionState.SKIPPED)

    def _names(self, state: TransactionState) -> List[str]:
        return [outcome.package.name for outcome in self.outcomes if outcome.state == state]
