"""The evolution timeline: versions, learned patterns, trends and forecasts.

``EvolutionTimeline`` is the aggregate that the engine feeds one version at a
time. Series (versions, quality, complexity, performance, refactorings) only
grow. Forecast lists and learning insights are rebuilt from scratch whenever
their inputs change. Health, debt, maturity and velocity are computed on
every read and never stored.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence

from .clock import Clock, utcnow
from .patterns.extraction import bulk_change_patterns, refactoring_pattern
from .patterns.models import (
    BugCategory,
    BugPattern,
    BugSeverity,
    DevelopmentPattern,
    RefactoringEvent,
    RefactoringImpact,
    RefactoringReason,
)
from .patterns.table import MergeTable
from .trends.models import (
    CodeMetrics,
    ComplexityDataPoint,
    ComplexityTrend,
    FutureIssue,
    PerformanceAnalysis,
    PerformanceSnapshot,
    PredictedIssue,
    QualityAnalysis,
    QualityTrend,
)
from .trends.predictions import forecast_future_issues, predict_issues
from .trends.windows import (
    average,
    growth_direction,
    improvement_rate,
    trend_direction,
    variability,
)
from .versioning.engine import analyze_changes, next_version
from .versioning.models import (
    INITIAL_VERSION,
    ChangeAnalysis,
    CodeChange,
    SemanticVersion,
    VersionType,
)

logger = logging.getLogger(__name__)

DEFAULT_COMPLEXITY = 1.0
DEFAULT_PERFORMANCE = 0.8
MAX_COMPLEXITY = 10.0

# Health weights
HEALTH_QUALITY_WEIGHT = 0.3
HEALTH_COMPLEXITY_WEIGHT = 0.25
HEALTH_BUG_WEIGHT = 0.25
HEALTH_PERFORMANCE_WEIGHT = 0.2
MIN_BUG_SCORE = 0.3

BOTTLENECK_THRESHOLD = 0.5
FREQUENT_PATTERN = 3
QUALITY_DROP = 0.1
QUALITY_LOOKBACK = 4
HEALTH_TARGET = 0.7

_METRIC_FIELDS = ("maintainability_index", "test_coverage", "code_reuse", "documentation")


class TechnicalDebtLevel(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class MaturityLevel(Enum):
    EXPERIMENTAL = "experimental"
    DEVELOPING = "developing"
    STABLE = "stable"
    MATURE = "mature"


class VelocityTrend(Enum):
    ACCELERATING = "accelerating"
    STABLE = "stable"
    DECELERATING = "decelerating"


# (level, min versions, min age in days, min health), checked in order.
_MATURITY_RULES = (
    (MaturityLevel.MATURE, 20, 90, 0.8),
    (MaturityLevel.STABLE, 10, 30, 0.7),
    (MaturityLevel.DEVELOPING, 5, 7, 0.6),
)


class InsightType(Enum):
    PATTERN = "pattern"
    QUALITY = "quality"
    HEALTH = "health"
    VELOCITY = "velocity"
    TECHNICAL_DEBT = "technical_debt"


@dataclass(frozen=True)
class Insight:
    type: InsightType
    title: str
    description: str
    recommendation: str
    confidence: float = 0.7
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class CodeVersion:
    """One entry of the timeline's version history."""

    version: SemanticVersion
    type: VersionType
    changes: tuple[CodeChange, ...]
    description: str
    author: str
    timestamp: datetime
    metrics: CodeMetrics
    change_analysis: ChangeAnalysis
    development_time: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class EvolutionReport:
    project_id: str
    current_version: SemanticVersion
    total_versions: int
    health_score: float
    technical_debt: TechnicalDebtLevel
    maturity: MaturityLevel
    velocity: VelocityTrend
    quality: QualityAnalysis
    performance: PerformanceAnalysis
    complexity: ComplexityTrend
    predicted_issues: list[PredictedIssue]
    future_issues: list[FutureIssue]
    insights: list[Insight]
    generated_at: datetime


@dataclass(frozen=True)
class EvolutionComparison:
    """Differences computed as ``this - other``."""

    health_difference: float
    quality_difference: float
    complexity_difference: float
    version_difference: int
    debt_levels: tuple[TechnicalDebtLevel, TechnicalDebtLevel]
    maturity_levels: tuple[MaturityLevel, MaturityLevel]

    @property
    def healthier(self) -> bool:
        return self.health_difference > 0


class EvolutionTimeline:
    """Version history and derived intelligence for one project."""

    def __init__(
        self,
        project_id: str = "default",
        quality_margin: float = 0.05,
        performance_margin: float = 0.1,
        pattern_limit: Optional[int] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.project_id = project_id
        self.quality_margin = quality_margin
        self.performance_margin = performance_margin
        self._clock = clock

        self.created_at: datetime = clock()
        self.last_modified: datetime = self.created_at
        self.current_version: SemanticVersion = INITIAL_VERSION
        self.code_metrics = CodeMetrics()

        self.version_history: list[CodeVersion] = []
        self.quality_trends: list[QualityTrend] = []
        self.complexity_points: list[ComplexityDataPoint] = []
        self.performance_history: list[PerformanceSnapshot] = []
        self.refactoring_history: list[RefactoringEvent] = []

        self.development_patterns: MergeTable[DevelopmentPattern] = MergeTable(
            max_entries=pattern_limit
        )
        self.bug_patterns: MergeTable[BugPattern] = MergeTable(max_entries=pattern_limit)

        self.predicted_issues: list[PredictedIssue] = []
        self.future_issues: list[FutureIssue] = []
        self.learning_insights: list[Insight] = []

    # ── recording ─────────────────────────────────────────────────

    def create_version(
        self,
        changes: Sequence[CodeChange],
        version_type: VersionType,
        description: str = "",
        author: str = "",
        at: Optional[datetime] = None,
        pinned: Optional[SemanticVersion] = None,
    ) -> CodeVersion:
        """Bump the current version and record what went into it.

        ``pinned`` fixes the resulting version instead of bumping, as when
        replaying a stored history. The version never moves backwards either way.
        """
        now = at or self._clock()
        new_version = pinned or next_version(self.current_version, version_type)
        if new_version < self.current_version:
            new_version = self.current_version

        analysis = analyze_changes(changes)
        previous = self.version_history[-1].timestamp if self.version_history else self.created_at
        development_time = max(0.0, (now - previous).total_seconds())

        metrics = self.code_metrics
        net_lines = sum(c.lines_added - c.lines_removed for c in changes)
        metrics.lines_of_code = max(0, metrics.lines_of_code + net_lines)
        metrics.complexity = analysis.complexity
        metrics.recompute_quality()
        metrics_copy = dataclasses.replace(metrics)

        version = CodeVersion(
            version=new_version,
            type=version_type,
            changes=tuple(changes),
            description=description,
            author=author,
            timestamp=now,
            metrics=metrics_copy,
            change_analysis=analysis,
            development_time=development_time,
        )
        self.version_history.append(version)
        self.current_version = new_version
        self.quality_trends.append(QualityTrend(now, metrics.overall_quality, metrics_copy))
        self.complexity_points.append(
            ComplexityDataPoint(now, analysis.complexity, str(new_version))
        )

        for candidate in bulk_change_patterns(changes, now):
            self.development_patterns.upsert(candidate, now)

        self.last_modified = now
        self._refresh(now)
        logger.debug(
            "Timeline %s -> %s (%s, %d changes)",
            self.project_id,
            new_version,
            version_type.value,
            len(changes),
        )
        return version

    def track_refactoring(
        self,
        description: str,
        files_affected: Sequence[str],
        reason: RefactoringReason,
        impact: RefactoringImpact,
        at: Optional[datetime] = None,
    ) -> RefactoringEvent:
        now = at or self._clock()
        event = RefactoringEvent(
            description=description,
            files_affected=tuple(files_affected),
            reason=reason,
            impact=impact,
            timestamp=now,
        )
        self.refactoring_history.append(event)
        self.development_patterns.upsert(refactoring_pattern(event), now)
        self.last_modified = now
        self._refresh(now)
        return event

    def track_bug_pattern(
        self,
        description: str,
        category: BugCategory,
        severity: BugSeverity,
        root_cause: str,
        fix: str,
        at: Optional[datetime] = None,
    ) -> BugPattern:
        """Record a bug sighting, merging it into a similar known pattern if any."""
        now = at or self._clock()
        candidate = BugPattern(
            description=description,
            category=category,
            severity=severity,
            root_cause=root_cause,
            fix=fix,
            first_seen=now,
            last_seen=now,
        )
        pattern, merged = self.bug_patterns.upsert(candidate, now)
        if merged:
            logger.debug("Bug pattern %s seen %d times", pattern.id, pattern.occurrence_count)
        self.last_modified = now
        self._refresh(now)
        return pattern

    def retract_bug_occurrence(self, pattern_id: str) -> Optional[BugPattern]:
        """Undo one sighting of a bug pattern; the pattern is dropped at zero."""
        pattern = self.bug_patterns.find(lambda p: p.id == pattern_id)
        if pattern is None:
            return None
        pattern.retract_occurrence()
        if pattern.occurrence_count == 0:
            self.bug_patterns.remove(pattern)
        self._refresh(self._clock())
        return pattern

    def record_performance(
        self,
        performance_index: float,
        memory_usage: float = 0.0,
        execution_time: float = 0.0,
        throughput: float = 0.0,
        at: Optional[datetime] = None,
    ) -> PerformanceSnapshot:
        now = at or self._clock()
        snapshot = PerformanceSnapshot(
            performance_index=performance_index,
            memory_usage=memory_usage,
            execution_time=execution_time,
            throughput=throughput,
            timestamp=now,
        )
        self.performance_history.append(snapshot)
        self.last_modified = now
        return snapshot

    def update_metrics(self, **values: float) -> CodeMetrics:
        """Overwrite quality inputs (maintainability_index, test_coverage, ...)."""
        unknown = set(values) - set(_METRIC_FIELDS)
        if unknown:
            raise ValueError(f"Unknown metric(s): {', '.join(sorted(unknown))}")
        for name, value in values.items():
            setattr(self.code_metrics, name, min(1.0, max(0.0, float(value))))
        self.code_metrics.recompute_quality()
        return self.code_metrics

    # ── derived scores (never cached) ─────────────────────────────

    @property
    def current_complexity(self) -> float:
        if not self.complexity_points:
            return DEFAULT_COMPLEXITY
        return self.complexity_points[-1].complexity

    @property
    def current_performance(self) -> float:
        if not self.performance_history:
            return DEFAULT_PERFORMANCE
        return self.performance_history[-1].performance_index

    @property
    def health_score(self) -> float:
        bug_count = len(self.bug_patterns)
        bug_score = 1.0 if bug_count == 0 else max(MIN_BUG_SCORE, 1.0 - bug_count / 10.0)
        score = (
            HEALTH_QUALITY_WEIGHT * self.code_metrics.overall_quality
            + HEALTH_COMPLEXITY_WEIGHT
            * (1.0 - min(1.0, self.current_complexity / MAX_COMPLEXITY))
            + HEALTH_BUG_WEIGHT * bug_score
            + HEALTH_PERFORMANCE_WEIGHT * self.current_performance
        )
        return min(1.0, max(0.0, score))

    @property
    def technical_debt_score(self) -> float:
        refactoring_term = 1.0 if not self.refactoring_history else 0.5
        score = (
            self.current_complexity / MAX_COMPLEXITY
            + len(self.bug_patterns) / 5.0
            + refactoring_term
        ) / 3.0
        return min(1.0, max(0.0, score))

    @property
    def technical_debt_level(self) -> TechnicalDebtLevel:
        score = self.technical_debt_score
        if score < 0.3:
            return TechnicalDebtLevel.LOW
        if score < 0.6:
            return TechnicalDebtLevel.MODERATE
        if score < 0.8:
            return TechnicalDebtLevel.HIGH
        return TechnicalDebtLevel.CRITICAL

    @property
    def maturity_level(self) -> MaturityLevel:
        versions = len(self.version_history)
        age_days = (self._clock() - self.created_at).days
        health = self.health_score
        for level, min_versions, min_days, min_health in _MATURITY_RULES:
            if versions >= min_versions and age_days >= min_days and health > min_health:
                return level
        return MaturityLevel.EXPERIMENTAL

    @property
    def velocity_trend(self) -> VelocityTrend:
        if len(self.version_history) < 3:
            return VelocityTrend.STABLE
        earlier, *recent = [v.development_time for v in self.version_history[-3:]]
        recent_avg = sum(recent) / len(recent)
        if earlier <= 0:
            return VelocityTrend.STABLE
        if recent_avg < 0.8 * earlier:
            return VelocityTrend.ACCELERATING
        if recent_avg > 1.2 * earlier:
            return VelocityTrend.DECELERATING
        return VelocityTrend.STABLE

    # ── analyses ──────────────────────────────────────────────────

    def quality_analysis(self) -> QualityAnalysis:
        values = [q.quality_score for q in self.quality_trends]
        return QualityAnalysis(
            average_quality=average(values),
            trend=trend_direction(values, self.quality_margin),
            variability=variability(values),
            improvement_rate=improvement_rate(values),
        )

    def performance_analysis(self) -> PerformanceAnalysis:
        values = [p.performance_index for p in self.performance_history]
        return PerformanceAnalysis(
            average_performance=average(values) if values else DEFAULT_PERFORMANCE,
            trend=trend_direction(values, self.performance_margin),
            variability=variability(values),
            bottlenecks=[
                p.timestamp
                for p in self.performance_history
                if p.performance_index < BOTTLENECK_THRESHOLD
            ],
        )

    def complexity_trend(self) -> ComplexityTrend:
        values = [p.complexity for p in self.complexity_points]
        return ComplexityTrend(
            current_complexity=self.current_complexity,
            direction=growth_direction(values),
            points=len(values),
        )

    def predict_future_issues(self) -> list[FutureIssue]:
        self.future_issues = forecast_future_issues(
            self.bug_patterns, self.complexity_trend().is_increasing
        )
        return self.future_issues

    def evolution_insights(self) -> list[Insight]:
        now = self._clock()
        insights = []
        health = self.health_score
        if health < HEALTH_TARGET:
            insights.append(
                Insight(
                    type=InsightType.HEALTH,
                    title="Code health below target",
                    description=f"Health score is {health:.2f}",
                    recommendation="Address recurring bugs and reduce complexity",
                    confidence=0.8,
                    timestamp=now,
                )
            )
        if self.velocity_trend is VelocityTrend.DECELERATING:
            insights.append(
                Insight(
                    type=InsightType.VELOCITY,
                    title="Development velocity is slowing",
                    description="Recent versions take longer to produce than earlier ones",
                    recommendation="Look for friction such as complex modules or missing tests",
                    timestamp=now,
                )
            )
        debt = self.technical_debt_level
        if debt in (TechnicalDebtLevel.HIGH, TechnicalDebtLevel.CRITICAL):
            insights.append(
                Insight(
                    type=InsightType.TECHNICAL_DEBT,
                    title=f"Technical debt is {debt.value}",
                    description=f"Debt score is {self.technical_debt_score:.2f}",
                    recommendation="Plan a refactoring pass before adding features",
                    confidence=0.8,
                    timestamp=now,
                )
            )
        return insights

    def generate_report(self) -> EvolutionReport:
        now = self._clock()
        self._refresh(now)
        return EvolutionReport(
            project_id=self.project_id,
            current_version=self.current_version,
            total_versions=len(self.version_history),
            health_score=self.health_score,
            technical_debt=self.technical_debt_level,
            maturity=self.maturity_level,
            velocity=self.velocity_trend,
            quality=self.quality_analysis(),
            performance=self.performance_analysis(),
            complexity=self.complexity_trend(),
            predicted_issues=list(self.predicted_issues),
            future_issues=list(self.future_issues),
            insights=list(self.learning_insights) + self.evolution_insights(),
            generated_at=now,
        )

    def compare(self, other: EvolutionTimeline) -> EvolutionComparison:
        return EvolutionComparison(
            health_difference=self.health_score - other.health_score,
            quality_difference=(
                self.code_metrics.overall_quality - other.code_metrics.overall_quality
            ),
            complexity_difference=self.current_complexity - other.current_complexity,
            version_difference=len(self.version_history) - len(other.version_history),
            debt_levels=(self.technical_debt_level, other.technical_debt_level),
            maturity_levels=(self.maturity_level, other.maturity_level),
        )

    def summary(self) -> dict[str, Any]:
        """Plain values for display and JSON output."""
        return {
            "project_id": self.project_id,
            "current_version": str(self.current_version),
            "versions": len(self.version_history),
            "health_score": round(self.health_score, 3),
            "technical_debt": self.technical_debt_level.value,
            "maturity": self.maturity_level.value,
            "velocity": self.velocity_trend.value,
            "bug_patterns": len(self.bug_patterns),
            "development_patterns": len(self.development_patterns),
        }

    # ── recomputation ─────────────────────────────────────────────

    def _refresh(self, now: datetime) -> None:
        """Rebuild forecasts and learning insights from current state."""
        self.predicted_issues = predict_issues(self.bug_patterns, now)
        self.predict_future_issues()
        self.learning_insights = self._learning_insights(now)

    def _learning_insights(self, now: datetime) -> list[Insight]:
        insights = [
            Insight(
                type=InsightType.PATTERN,
                title=f"Recurring pattern: {pattern.name}",
                description=f"{pattern.description} (seen {pattern.frequency} times)",
                recommendation="Consider automating or standardizing this workflow",
                confidence=pattern.confidence,
                timestamp=now,
            )
            for pattern in self.development_patterns
            if pattern.frequency > FREQUENT_PATTERN
        ]
        if len(self.quality_trends) > QUALITY_LOOKBACK:
            latest = self.quality_trends[-1].quality_score
            earlier = self.quality_trends[-1 - QUALITY_LOOKBACK].quality_score
            if earlier - latest > QUALITY_DROP:
                insights.append(
                    Insight(
                        type=InsightType.QUALITY,
                        title="Code quality declining",
                        description=(
                            f"Quality fell from {earlier:.2f} to {latest:.2f} "
                            f"over the last {QUALITY_LOOKBACK} versions"
                        ),
                        recommendation="Increase test coverage and documentation",
                        confidence=0.8,
                        timestamp=now,
                    )
                )
        return insights
