"""Pattern records learned from development history.

Each pattern type knows when another instance describes the same thing
(``is_similar``) and how to absorb a repeat sighting (``record_occurrence``).
The shared table in :mod:`code_timeline.patterns.table` relies on both.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..analysis.languages import Language
from ..clock import utcnow


def _new_id() -> str:
    return uuid.uuid4().hex


def _overlaps(a: str, b: str) -> bool:
    """Case-insensitive containment in either direction."""
    a, b = a.lower(), b.lower()
    return a in b or b in a


class PatternImpact(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class DevelopmentPattern:
    """A recurring way changes get made (bulk edits, refactoring habits)."""

    name: str
    description: str
    frequency: int = 1
    confidence: float = 0.5
    impact: PatternImpact = PatternImpact.MEDIUM
    last_occurrence: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        self.confidence = min(1.0, max(0.0, self.confidence))

    def is_similar(self, other: DevelopmentPattern) -> bool:
        return _overlaps(self.name, other.name)

    def record_occurrence(self, at: datetime) -> None:
        self.frequency += 1
        self.last_occurrence = at


class BugCategory(Enum):
    LOGIC = "logic"
    SYNTAX = "syntax"
    RUNTIME = "runtime"
    PERFORMANCE = "performance"
    SECURITY = "security"
    UI = "ui"
    INTEGRATION = "integration"
    DATA = "data"


class BugSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class BugPattern:
    description: str
    category: BugCategory
    severity: BugSeverity
    root_cause: str
    fix: str
    occurrence_count: int = 1
    first_seen: datetime = field(default_factory=utcnow)
    last_seen: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)

    def is_similar(self, other: BugPattern) -> bool:
        if self.category is not other.category:
            return False
        return _overlaps(self.description, other.description) or _overlaps(
            self.root_cause, other.root_cause
        )

    def record_occurrence(self, at: datetime) -> None:
        self.occurrence_count += 1
        self.last_seen = at

    def retract_occurrence(self) -> None:
        self.occurrence_count = max(0, self.occurrence_count - 1)


class CodePatternKind(Enum):
    NAMING = "naming"
    INDENTATION = "indentation"
    FORMATTING = "formatting"
    STRUCTURE = "structure"
    COMMENTS = "comments"


@dataclass
class CodePattern:
    """A style habit observed in tracked code, such as snake_case variables."""

    kind: CodePatternKind
    language: Language
    signature: str
    description: str
    template: str = ""
    features: frozenset[str] = frozenset()
    usage_count: int = 1
    confidence: float = 0.5
    first_seen: datetime = field(default_factory=utcnow)
    last_seen: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)

    def is_similar(self, other: CodePattern) -> bool:
        return (
            self.kind is other.kind
            and self.language is other.language
            and self.signature == other.signature
        )

    def record_occurrence(self, at: datetime) -> None:
        self.usage_count += 1
        self.confidence = min(1.0, self.confidence + 0.1)
        self.last_seen = at

    @property
    def weight(self) -> float:
        return min(1.0, 0.1 * self.usage_count)


class RefactoringReason(Enum):
    COMPLEXITY = "complexity"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    READABILITY = "readability"
    TESTING = "testing"
    ARCHITECTURE = "architecture"


class RefactoringImpact(Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


@dataclass(frozen=True)
class RefactoringEvent:
    description: str
    files_affected: tuple[str, ...]
    reason: RefactoringReason
    impact: RefactoringImpact
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)
