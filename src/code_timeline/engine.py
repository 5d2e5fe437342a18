"""The evolution engine: one entry point over snapshots, versions and patterns.

Every mutating operation runs under a single re-entrant lock, so the engine
can be shared between a request handler and background callers. The engine
keeps its state in memory; an optional persistence backend is read once by
:meth:`CodeTimelineEngine.initialize` and written by
:meth:`CodeTimelineEngine.shutdown`.

Example:
    >>> engine = CodeTimelineEngine()
    >>> ctx = ConversationContext("thread-1", WorkspaceType.CODE)
    >>> result = engine.track_evolution("def f():\\n    return 1\\n", "python", ctx)
    >>> result.evolution.type
    <EvolutionType.INITIAL: 'initial'>
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from collections import Counter, deque
from datetime import datetime, timedelta
from typing import Optional

from .analysis.heuristics import complexity, line_count, partial_code_features
from .analysis.languages import Language
from .analysis.refactoring import RefactoringOpportunity, find_opportunities
from .clock import Clock, utcnow
from .config import DEFAULT_CONFIG, EngineConfig
from .evolution.classifier import classify
from .evolution.models import (
    CodeEvolution,
    CodeSnapshot,
    CodeVersionRecord,
    ConversationContext,
    EvolutionType,
    WorkspaceType,
)
from .evolution.store import SnapshotStore
from .patterns.learner import CodePatternLearner
from .persistence import SnapshotPersistence
from .results import (
    CodeSuggestion,
    CodeTrend,
    EvolutionMetrics,
    EvolutionResult,
    PatternAnalysis,
    Prediction,
    SuggestionType,
    TimeFrame,
    TrendKind,
)
from .session import CodingSession, SessionSummary, SessionTracker
from .timeline import EvolutionTimeline
from .trends.windows import GrowthDirection, growth_direction
from .versioning.engine import classify_change
from .versioning.models import ChangeType, CodeChange, SemanticVersion, VersionType

logger = logging.getLogger(__name__)

PROGRESS_FUNCTIONS = 3
MAX_SUGGESTIONS = 5
HISTORY_SATURATION = 20
NO_MATCH_CONFIDENCE = 0.1

_CHANGE_TYPES = {
    EvolutionType.INITIAL: ChangeType.FEATURE,
    EvolutionType.EXPANSION: ChangeType.FEATURE,
    EvolutionType.REDUCTION: ChangeType.REFACTOR,
    EvolutionType.REFACTORING: ChangeType.REFACTOR,
    EvolutionType.MODIFICATION: ChangeType.BUGFIX,
}


class CodeTimelineEngine:
    """Tracks code snapshots from conversations and reasons about their history."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        persistence: Optional[SnapshotPersistence] = None,
        clock: Clock = utcnow,
        project_id: str = "default",
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.persistence = persistence
        self._clock = clock
        self._lock = threading.RLock()

        self._store = SnapshotStore(self.config.history_limit)
        self._versions: deque[CodeVersionRecord] = deque(maxlen=self.config.version_retention)
        self._learner = CodePatternLearner(max_entries=self.config.pattern_limit)
        self._sessions = SessionTracker(self.config.heartbeat_interval, clock)
        self._metrics = EvolutionMetrics()
        self.timeline = EvolutionTimeline(
            project_id=project_id,
            quality_margin=self.config.quality_margin,
            performance_margin=self.config.performance_margin,
            pattern_limit=self.config.pattern_limit,
            clock=clock,
        )

    # ── lifecycle ─────────────────────────────────────────────────

    def initialize(self) -> int:
        """Replay stored snapshots (if a backend is set). Returns how many were loaded.

        Replaying classifies each stored snapshot again at its original
        timestamp, which rebuilds the version timeline, learned patterns and
        retained code versions exactly as they were when first tracked.
        """
        if self.persistence is None:
            return 0
        snapshots = sorted(self.persistence.load(), key=lambda s: s.timestamp)
        with self._lock:
            if snapshots and snapshots[0].timestamp < self.timeline.created_at:
                self.timeline.created_at = snapshots[0].timestamp
            for snapshot in snapshots:
                self._ingest(snapshot, None, live=False)
        logger.info("Replayed %d snapshots from storage", len(snapshots))
        return len(snapshots)

    def shutdown(self, save: bool = True) -> None:
        """Drop any live session and, unless ``save`` is False, write snapshots."""
        self._sessions.close()
        if self.persistence is None or not save:
            return
        with self._lock:
            snapshots = list(self._store)
        self.persistence.save(snapshots)
        logger.info("Saved %d snapshots to storage", len(snapshots))

    def __enter__(self) -> CodeTimelineEngine:
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    # ── tracking ──────────────────────────────────────────────────

    def track_evolution(
        self,
        code: str,
        language: Language | str,
        context: ConversationContext,
        version_type: Optional[VersionType] = None,
    ) -> EvolutionResult:
        """Record a new snapshot and classify it against recent same-language history.

        When ``version_type`` is omitted it is derived from the evolution record.
        """
        with self._lock:
            snapshot = CodeSnapshot(
                code=code,
                language=Language.parse(language),
                timestamp=self._clock(),
                conversation_id=context.conversation_id,
                workspace_type=context.workspace_type,
            )
            result = self._ingest(snapshot, version_type, live=True)

        logger.debug(
            "Tracked %s snapshot: %s -> %s",
            snapshot.language.value,
            result.evolution.type.value,
            result.version,
        )
        return result

    def _ingest(
        self, snapshot: CodeSnapshot, version_type: Optional[VersionType], live: bool
    ) -> EvolutionResult:
        """Run one snapshot through classification, versioning and learning.

        Caller holds the lock. ``live`` snapshots are also attached to the
        active session. A replayed snapshot keeps the bump and version it was
        given when first tracked.
        """
        language = snapshot.language
        prior = self._store.prior(language, self.config.prior_window)
        evolution = classify(snapshot, prior)
        chosen_type = version_type or snapshot.version_type or classify_change(evolution)

        version = self.timeline.create_version(
            [self._change_for(snapshot, evolution)],
            chosen_type,
            description=f"{evolution.type.value} of {language.value} code",
            author=snapshot.conversation_id,
            at=snapshot.timestamp,
            pinned=SemanticVersion.parse(snapshot.version) if snapshot.version else None,
        )
        version_string = str(version.version)
        snapshot = dataclasses.replace(snapshot, version_type=chosen_type, version=version_string)

        self._learner.learn(snapshot)
        patterns = self._learner.relevant(snapshot.code, language)

        self._store.append(snapshot)
        self._versions.append(
            CodeVersionRecord(
                id=uuid.uuid4().hex,
                code=snapshot.code,
                version=version_string,
                language=language,
                evolution=evolution,
                timestamp=snapshot.timestamp,
            )
        )
        if live:
            self._sessions.record(snapshot)
        self._update_metrics(evolution, snapshot.timestamp)

        return EvolutionResult(
            snapshot=snapshot,
            evolution=evolution,
            version=version_string,
            version_type=chosen_type,
            patterns=patterns,
            suggestions=self._suggestions(evolution),
        )

    def _change_for(self, snapshot: CodeSnapshot, evolution: CodeEvolution) -> CodeChange:
        return CodeChange(
            file_path=f"{snapshot.conversation_id or 'snapshot'}.{snapshot.language.value}",
            type=_CHANGE_TYPES[evolution.type],
            lines_added=evolution.lines_added,
            lines_removed=evolution.lines_removed,
            description=", ".join(sorted(kind.value for kind in evolution.changes)),
            timestamp=snapshot.timestamp,
        )

    def _suggestions(self, evolution: CodeEvolution) -> list[str]:
        suggestions = []
        if evolution.complexity > self.config.complexity_warning:
            suggestions.append("Consider refactoring to reduce complexity")
        if evolution.functions_added > PROGRESS_FUNCTIONS:
            suggestions.append("Good progress adding functionality")
        if evolution.type is EvolutionType.REFACTORING:
            suggestions.append("Excellent refactoring work!")
        return suggestions

    def _update_metrics(self, evolution: CodeEvolution, at: datetime) -> None:
        metrics = self._metrics
        metrics.total_evolutions += 1
        metrics.last_evolution = at
        metrics.average_complexity += (
            evolution.complexity - metrics.average_complexity
        ) / metrics.total_evolutions
        key = evolution.type.value
        metrics.evolution_types[key] = metrics.evolution_types.get(key, 0) + 1

    # ── queries ───────────────────────────────────────────────────

    def get_history(
        self, language: Language | str | None = None, limit: int = 50
    ) -> list[CodeSnapshot]:
        """The most recent ``limit`` snapshots, oldest first."""
        selected = Language.parse(language) if language is not None else None
        with self._lock:
            return self._store.recent(selected, limit)

    def analyze_patterns(self, timeframe: TimeFrame = TimeFrame.LAST_WEEK) -> PatternAnalysis:
        with self._lock:
            cutoff = self._clock() - timedelta(days=timeframe.days)
            snapshots = self._store.since(cutoff)

        scores = [complexity(s.code, s.language) for s in snapshots]
        total_lines = sum(line_count(s.code) for s in snapshots)
        return PatternAnalysis(
            timeframe=timeframe,
            total_snapshots=len(snapshots),
            language_distribution=dict(Counter(s.language.value for s in snapshots)),
            hourly_distribution=dict(Counter(s.timestamp.hour for s in snapshots)),
            average_complexity=sum(scores) / len(scores) if scores else 0.0,
            productivity_score=total_lines / timeframe.days,
            trends=self._trends(snapshots, scores),
        )

    def _trends(self, snapshots: list[CodeSnapshot], scores: list[float]) -> list[CodeTrend]:
        trends = []
        if len(scores) > 1:
            direction = growth_direction(scores)
            trends.append(
                CodeTrend(
                    kind=TrendKind.COMPLEXITY,
                    direction=direction,
                    description=f"Code complexity is {direction.value}",
                )
            )
        per_day = Counter(s.timestamp.date() for s in snapshots)
        if len(per_day) > 1:
            counts = [per_day[day] for day in sorted(per_day)]
            direction = growth_direction(counts)
            trends.append(
                CodeTrend(
                    kind=TrendKind.ACTIVITY,
                    direction=direction,
                    description=_activity_description(direction),
                )
            )
        return trends

    def predict_next(
        self,
        context: ConversationContext,
        partial_code: str = "",
        language: Language | str | None = None,
    ) -> Prediction:
        """Suggest what comes next, based on recent work in the same kind of workspace.

        ``language`` is the language of ``partial_code``; without it only
        brace-delimited blocks get a completion.
        """
        with self._lock:
            cutoff = self._clock() - timedelta(days=self.config.relevant_history_days)
            history = self._store.since(cutoff, context.workspace_type)
            patterns = self._learner.applicable(history, partial_code)

        suggestions = [
            CodeSuggestion(
                code=pattern.template,
                description=pattern.description,
                confidence=pattern.weight,
                type=SuggestionType.PATTERN,
            )
            for pattern in patterns[:MAX_SUGGESTIONS]
        ]
        completion = _completion_for(
            partial_code, Language.parse(language) if language is not None else None
        )
        if completion is not None:
            suggestions.insert(0, completion)

        if not patterns or not history:
            confidence = NO_MATCH_CONFIDENCE
            reasoning = "No similar patterns found in coding history"
        else:
            mean_weight = sum(p.weight for p in patterns) / len(patterns)
            confidence = (mean_weight + min(1.0, len(history) / HISTORY_SATURATION)) / 2.0
            reasoning = (
                f"Based on {len(patterns)} similar patterns, "
                f"most commonly: {patterns[0].description}"
            )

        return Prediction(
            suggestions=suggestions,
            confidence=confidence,
            patterns=patterns,
            reasoning=reasoning,
        )

    def refactoring_opportunities(
        self, code: str, language: Language | str
    ) -> list[RefactoringOpportunity]:
        return find_opportunities(code, Language.parse(language), self.config.complexity_warning)

    # ── sessions ──────────────────────────────────────────────────

    def start_session(
        self,
        language: Language | str,
        workspace_type: WorkspaceType = WorkspaceType.GENERAL,
        replace: bool = False,
    ) -> CodingSession:
        """Start a coding session.

        Raises:
            SessionAlreadyActiveError: If one is live and ``replace`` is False.
        """
        with self._lock:
            if replace:
                self._sessions.end()
            return self._sessions.start(Language.parse(language), workspace_type)

    def end_session(self) -> Optional[SessionSummary]:
        with self._lock:
            return self._sessions.end()

    @property
    def session(self) -> Optional[CodingSession]:
        return self._sessions.current

    # ── state ─────────────────────────────────────────────────────

    @property
    def metrics(self) -> EvolutionMetrics:
        return self._metrics

    @property
    def code_versions(self) -> list[CodeVersionRecord]:
        with self._lock:
            return list(self._versions)

    @property
    def snapshot_count(self) -> int:
        return len(self._store)


def _activity_description(direction: GrowthDirection) -> str:
    if direction is GrowthDirection.INCREASING:
        return "Coding activity is picking up"
    if direction is GrowthDirection.DECREASING:
        return "Coding activity is slowing down"
    return "Coding activity is steady"


def _completion_for(partial_code: str, language: Optional[Language]) -> Optional[CodeSuggestion]:
    if "partial:incomplete_block" not in partial_code_features(partial_code):
        return None
    stripped = partial_code.rstrip()
    if stripped.count("{") > stripped.count("}"):
        closing = "}" * (stripped.count("{") - stripped.count("}"))
        return CodeSuggestion(closing, "Close the open block", 0.5, SuggestionType.COMPLETION)
    if language is not Language.PYTHON:
        return None
    return CodeSuggestion("    pass", "Add a body to the open block", 0.3, SuggestionType.COMPLETION)
