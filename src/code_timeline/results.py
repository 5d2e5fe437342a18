"""Result records returned by :class:`code_timeline.engine.CodeTimelineEngine`."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .evolution.models import CodeEvolution, CodeSnapshot
from .patterns.models import CodePattern
from .trends.windows import GrowthDirection
from .versioning.models import VersionType


class TimeFrame(Enum):
    LAST_DAY = "day"
    LAST_WEEK = "week"
    LAST_MONTH = "month"
    LAST_YEAR = "year"

    @property
    def days(self) -> int:
        return _TIMEFRAME_DAYS[self]


_TIMEFRAME_DAYS = {
    TimeFrame.LAST_DAY: 1,
    TimeFrame.LAST_WEEK: 7,
    TimeFrame.LAST_MONTH: 30,
    TimeFrame.LAST_YEAR: 365,
}


@dataclass(frozen=True)
class EvolutionResult:
    snapshot: CodeSnapshot
    evolution: CodeEvolution
    version: str
    version_type: VersionType
    patterns: list[CodePattern]
    suggestions: list[str]


class TrendKind(Enum):
    COMPLEXITY = "complexity"
    ACTIVITY = "activity"


@dataclass(frozen=True)
class CodeTrend:
    kind: TrendKind
    direction: GrowthDirection
    description: str


@dataclass(frozen=True)
class PatternAnalysis:
    timeframe: TimeFrame
    total_snapshots: int
    language_distribution: dict[str, int]
    hourly_distribution: dict[int, int]
    average_complexity: float
    productivity_score: float
    trends: list[CodeTrend]


class SuggestionType(Enum):
    PATTERN = "pattern"
    COMPLETION = "completion"


@dataclass(frozen=True)
class CodeSuggestion:
    code: str
    description: str
    confidence: float
    type: SuggestionType


@dataclass(frozen=True)
class Prediction:
    suggestions: list[CodeSuggestion]
    confidence: float
    patterns: list[CodePattern]
    reasoning: str


@dataclass
class EvolutionMetrics:
    total_evolutions: int = 0
    last_evolution: Optional[datetime] = None
    average_complexity: float = 0.0
    evolution_types: dict[str, int] = field(default_factory=dict)
