"""Semantic versions and the change records that drive them."""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..clock import utcnow
from ..trends.windows import GrowthDirection

_VERSION_RE = re.compile(
    r"^\s*v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+([0-9A-Za-z.-]+))?\s*$"
)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """``major.minor.patch`` with optional prerelease and build labels.

    Equality, hashing and ordering look at the numeric triple only.
    """

    major: int = 0
    minor: int = 1
    patch: int = 0
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse ``M.m.p[-pre][+build]``; anything malformed yields 1.0.0."""
        match = _VERSION_RE.match(text or "")
        if match is None:
            return cls(1, 0, 0)
        major, minor, patch, pre, build = match.groups()
        return cls(int(major), int(minor), int(patch), pre, build)

    @property
    def triple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.triple == other.triple

    def __lt__(self, other: SemanticVersion) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.triple < other.triple

    def __hash__(self) -> int:
        return hash(self.triple)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


INITIAL_VERSION = SemanticVersion(0, 1, 0)


class VersionType(Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"


class ChangeType(Enum):
    FEATURE = "feature"
    BUGFIX = "bugfix"
    REFACTOR = "refactor"
    DOCUMENTATION = "documentation"
    TEST = "test"
    PERFORMANCE = "performance"
    SECURITY = "security"
    ARCHITECTURE = "architecture"
    STYLE = "style"


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class CodeChange:
    """One file-level change contributing to a version."""

    file_path: str
    type: ChangeType
    lines_added: int = 0
    lines_removed: int = 0
    description: str = ""
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def lines_changed(self) -> int:
        return self.lines_added + self.lines_removed

    @property
    def touches_core(self) -> bool:
        return "core" in self.file_path


@dataclass(frozen=True)
class ChangeAnalysis:
    total_changes: int
    lines_changed: int
    files_affected: int
    change_types: frozenset[ChangeType]
    complexity: float
    risk_level: RiskLevel


class Comparison(Enum):
    OLDER = "older"
    SAME = "same"
    NEWER = "newer"


class Compatibility(Enum):
    INCOMPATIBLE = "incompatible"
    BACKWARD_COMPATIBLE = "backward_compatible"
    FULLY_COMPATIBLE = "fully_compatible"


@dataclass(frozen=True)
class VersionComparison:
    """How the first version relates to the second."""

    result: Comparison
    distance: int
    compatibility: Compatibility


class PlannedChangeKind(Enum):
    BREAKING = "breaking"
    FEATURE = "feature"
    FIX = "fix"
    IMPROVEMENT = "improvement"


@dataclass(frozen=True)
class PlannedChange:
    kind: PlannedChangeKind
    description: str = ""


@dataclass(frozen=True)
class VersionSuggestion:
    current: SemanticVersion
    suggested: SemanticVersion
    version_type: VersionType
    confidence: float
    reasoning: str


@dataclass(frozen=True)
class VersionTrend:
    """Release cadence and stability over a timeframe."""

    release_frequency: float
    change_distribution: dict[VersionType, float]
    stability_score: float
    direction: GrowthDirection
