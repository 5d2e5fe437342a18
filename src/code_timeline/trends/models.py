"""Series points, trend summaries and forecast records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..clock import utcnow
from ..patterns.models import BugSeverity
from .windows import GrowthDirection, TrendDirection


@dataclass
class CodeMetrics:
    """Running quality metrics of a codebase; all ratios live in [0, 1]."""

    lines_of_code: int = 0
    complexity: float = 0.0
    maintainability_index: float = 0.8
    test_coverage: float = 0.0
    code_reuse: float = 0.5
    documentation: float = 0.3
    overall_quality: float = 0.6

    def recompute_quality(self) -> float:
        self.overall_quality = (
            self.maintainability_index + self.test_coverage + self.code_reuse + self.documentation
        ) / 4.0
        return self.overall_quality


@dataclass(frozen=True)
class QualityTrend:
    timestamp: datetime
    quality_score: float
    metrics: CodeMetrics


@dataclass(frozen=True)
class ComplexityDataPoint:
    """Change complexity of one version, on the 0-10 scale."""

    timestamp: datetime
    complexity: float
    version: str


@dataclass(frozen=True)
class PerformanceSnapshot:
    performance_index: float
    memory_usage: float = 0.0
    execution_time: float = 0.0
    throughput: float = 0.0
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "performance_index", min(1.0, max(0.0, self.performance_index)))


@dataclass(frozen=True)
class QualityAnalysis:
    average_quality: float
    trend: TrendDirection
    variability: float
    improvement_rate: float


@dataclass(frozen=True)
class PerformanceAnalysis:
    average_performance: float
    trend: TrendDirection
    variability: float
    bottlenecks: list[datetime]


@dataclass(frozen=True)
class ComplexityTrend:
    current_complexity: float
    direction: GrowthDirection
    points: int

    @property
    def is_increasing(self) -> bool:
        return self.direction is GrowthDirection.INCREASING


class IssueType(Enum):
    BUG_RECURRENCE = "bug_recurrence"
    COMPLEXITY_OVERLOAD = "complexity_overload"
    PERFORMANCE_DEGRADATION = "performance_degradation"
    SECURITY_VULNERABILITY = "security_vulnerability"
    MAINTAINABILITY_ISSUE = "maintainability_issue"


class TimeUnit(Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


_UNIT_DAYS = {TimeUnit.DAYS: 1, TimeUnit.WEEKS: 7, TimeUnit.MONTHS: 30}


@dataclass(frozen=True)
class IssueTimeline:
    unit: TimeUnit
    count: int

    @classmethod
    def days(cls, count: int) -> IssueTimeline:
        return cls(TimeUnit.DAYS, count)

    @classmethod
    def weeks(cls, count: int) -> IssueTimeline:
        return cls(TimeUnit.WEEKS, count)

    @classmethod
    def months(cls, count: int) -> IssueTimeline:
        return cls(TimeUnit.MONTHS, count)

    @property
    def approximate_days(self) -> int:
        return self.count * _UNIT_DAYS[self.unit]

    @property
    def label(self) -> str:
        unit = self.unit.value
        if self.count == 1:
            unit = unit[:-1]
        return f"{self.count} {unit}"


@dataclass(frozen=True)
class PredictedIssue:
    """A near-term risk projected from a recurring bug pattern."""

    type: IssueType
    description: str
    probability: float
    timeline: IssueTimeline
    severity: BugSeverity
    suggested_action: str


@dataclass(frozen=True)
class FutureIssue:
    """A longer-range risk with a prevention strategy."""

    type: IssueType
    description: str
    probability: float
    timeline: IssueTimeline
    severity: BugSeverity
    prevention_strategy: str
