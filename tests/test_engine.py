"""Tests for CodeTimelineEngine: tracking, queries, sessions and replay."""

import pytest

from code_timeline.analysis.languages import Language
from code_timeline.config import EngineConfig
from code_timeline.engine import CodeTimelineEngine
from code_timeline.evolution.models import ConversationContext, EvolutionType, WorkspaceType
from code_timeline.exceptions import SessionAlreadyActiveError
from code_timeline.results import SuggestionType, TimeFrame, TrendKind
from code_timeline.trends.windows import GrowthDirection
from code_timeline.versioning.models import VersionType


class MemoryPersistence:
    """In-memory stand-in for SnapshotDB."""

    def __init__(self, snapshots=None):
        self.snapshots = list(snapshots or [])
        self.saves = 0

    def load(self):
        return list(self.snapshots)

    def save(self, snapshots):
        self.snapshots = list(snapshots)
        self.saves += 1
        return len(self.snapshots)


@pytest.fixture
def engine(clock):
    e = CodeTimelineEngine(EngineConfig(heartbeat_interval=0.05), clock=clock)
    yield e
    e.shutdown()


class TestTrackEvolution:
    def test_first_snapshot_is_initial(self, engine, context, swift_source):
        result = engine.track_evolution(swift_source(10, 1), "swift", context)
        assert result.evolution.type is EvolutionType.INITIAL
        assert result.snapshot.language is Language.SWIFT
        assert result.snapshot.conversation_id == "thread-1"
        assert result.version_type is VersionType.PATCH
        assert result.version == "0.1.1"

    def test_swift_expansion(self, engine, context, clock, swift_source):
        engine.track_evolution(swift_source(10, 1), Language.SWIFT, context)
        clock.advance(minutes=5)
        result = engine.track_evolution(swift_source(30, 3), Language.SWIFT, context)

        evolution = result.evolution
        assert evolution.type is EvolutionType.EXPANSION
        assert evolution.lines_added == 20
        assert evolution.functions_added == 2
        assert result.version_type is VersionType.MINOR
        assert result.version == "0.2.0"

    def test_languages_have_separate_histories(self, engine, context, swift_source):
        engine.track_evolution(swift_source(10, 1), "swift", context)
        result = engine.track_evolution("def main():\n    pass", "python", context)
        assert result.evolution.type is EvolutionType.INITIAL

    def test_explicit_version_type(self, engine, context):
        result = engine.track_evolution("let a = 1", "swift", context, VersionType.MAJOR)
        assert result.version == "1.0.0"
        assert engine.timeline.current_version.triple == (1, 0, 0)

    def test_versions_are_monotone(self, engine, context, clock, swift_source):
        versions = []
        for lines, functions in [(10, 1), (30, 3), (12, 1), (12, 1), (40, 5)]:
            clock.advance(minutes=1)
            result = engine.track_evolution(swift_source(lines, functions), "swift", context)
            versions.append(engine.timeline.current_version)
            assert str(engine.timeline.current_version) == result.version
        assert versions == sorted(versions)

    def test_complexity_suggestion(self, engine, context):
        code = "\n".join(f"func f{i}() {{ if a {{ }} }}" for i in range(12))
        result = engine.track_evolution(code, "swift", context)
        assert "Consider refactoring to reduce complexity" in result.suggestions
        assert "Good progress adding functionality" in result.suggestions

    def test_learned_patterns_are_returned(self, engine, context, clock):
        code = "func loadFeed() {\n    let pageSize = 20\n}"
        engine.track_evolution(code, "swift", context)
        clock.advance(minutes=1)
        result = engine.track_evolution(code, "swift", context)
        assert result.patterns
        assert all(p.language is Language.SWIFT for p in result.patterns)

    def test_metrics_running_mean(self, engine, context, clock):
        engine.track_evolution("let a = 1", "swift", context)
        clock.advance(minutes=1)
        engine.track_evolution("let a = 1\nlet b = 2\nlet c = 3", "swift", context)

        metrics = engine.metrics
        assert metrics.total_evolutions == 2
        assert metrics.average_complexity == pytest.approx((0.01 + 0.03) / 2)
        assert metrics.last_evolution == clock()
        assert metrics.evolution_types == {"initial": 1, "expansion": 1}

    def test_code_version_retention(self, clock, context):
        engine = CodeTimelineEngine(EngineConfig(version_retention=2), clock=clock)
        for i in range(4):
            clock.advance(minutes=1)
            engine.track_evolution("let a = 1\n" * (i + 1), "swift", context)
        records = engine.code_versions
        assert len(records) == 2
        assert records[-1].version == str(engine.timeline.current_version)
        engine.shutdown()

    def test_history_limit(self, clock, context):
        engine = CodeTimelineEngine(EngineConfig(history_limit=3), clock=clock)
        for i in range(5):
            engine.track_evolution(f"let a = {i}", "swift", context)
        assert engine.snapshot_count == 3
        assert [s.code for s in engine.get_history()] == ["let a = 2", "let a = 3", "let a = 4"]
        engine.shutdown()


class TestQueries:
    def test_history_by_language(self, engine, context):
        engine.track_evolution("let a = 1", "swift", context)
        engine.track_evolution("a = 1", "python", context)
        engine.track_evolution("let b = 2", "swift", context)
        assert [s.code for s in engine.get_history("swift", limit=1)] == ["let b = 2"]
        assert len(engine.get_history()) == 3

    def test_analyze_patterns(self, engine, context, clock):
        for hours, code in [(0, "let a = 1"), (1, "let a = 1\nlet b = 2"), (2, "func f() {\n}")]:
            clock.advance(hours=hours)
            engine.track_evolution(code, "swift", context)
        engine.track_evolution("x = 1", "python", context)

        analysis = engine.analyze_patterns(TimeFrame.LAST_WEEK)
        assert analysis.total_snapshots == 4
        assert analysis.language_distribution == {"swift": 3, "python": 1}
        assert analysis.productivity_score == pytest.approx((1 + 2 + 2 + 1) / 7)
        complexity = next(t for t in analysis.trends if t.kind is TrendKind.COMPLEXITY)
        assert complexity.direction is GrowthDirection.INCREASING

    def test_analyze_patterns_ignores_old_snapshots(self, engine, context, clock):
        engine.track_evolution("let a = 1", "swift", context)
        clock.advance(days=3)
        analysis = engine.analyze_patterns(TimeFrame.LAST_DAY)
        assert analysis.total_snapshots == 0
        assert analysis.average_complexity == 0.0
        assert analysis.trends == []

    def test_activity_trend(self, engine, context, clock):
        for _ in range(3):
            engine.track_evolution("let a = 1", "swift", context)
        clock.advance(days=1)
        engine.track_evolution("let a = 1", "swift", context)
        analysis = engine.analyze_patterns(TimeFrame.LAST_WEEK)
        activity = next(t for t in analysis.trends if t.kind is TrendKind.ACTIVITY)
        assert activity.direction is GrowthDirection.STABLE

    def test_predict_without_history(self, engine, context):
        prediction = engine.predict_next(context)
        assert prediction.confidence == pytest.approx(0.1)
        assert prediction.suggestions == []
        assert prediction.reasoning == "No similar patterns found in coding history"

    def test_predict_from_history(self, engine, context, clock):
        code = "func loadFeed() {\n    let pageSize = 20\n}"
        for _ in range(3):
            clock.advance(minutes=1)
            engine.track_evolution(code, "swift", context)

        prediction = engine.predict_next(context)
        assert prediction.patterns
        assert prediction.confidence > 0.1
        assert all(s.type is SuggestionType.PATTERN for s in prediction.suggestions)
        assert len(prediction.suggestions) <= 5

    def test_predict_filters_workspace(self, engine, context):
        engine.track_evolution("func a() {\n}", "swift", context)
        other = ConversationContext("thread-2", WorkspaceType.RESEARCH)
        assert engine.predict_next(other).patterns == []

    def test_completion_for_open_block(self, engine, context):
        prediction = engine.predict_next(context, "func render() {")
        first = prediction.suggestions[0]
        assert first.type is SuggestionType.COMPLETION
        assert first.code == "}"

    def test_completion_for_python_block(self, engine, context):
        prediction = engine.predict_next(context, "if ready:", language="python")
        assert prediction.suggestions[0].code == "    pass"

    def test_no_python_body_for_other_languages(self, engine, context):
        assert engine.predict_next(context, "case .loading:", language="swift").suggestions == []
        assert engine.predict_next(context, "case .loading:").suggestions == []

    def test_refactoring_opportunities(self, engine):
        code = "\n".join(f"def f{i}():\n    if a:\n        for b in c: pass" for i in range(5))
        found = engine.refactoring_opportunities(code, "python")
        assert found
        assert found[0].type.value == "reduce_complexity"


class TestSessions:
    def test_end_without_session(self, engine):
        assert engine.end_session() is None

    def test_session_collects_tracked_snapshots(self, engine, context, clock):
        engine.start_session("swift", WorkspaceType.CODE)
        engine.track_evolution("let a = 1", "swift", context)
        clock.advance(minutes=10)
        summary = engine.end_session()
        assert summary.snapshot_count == 1
        assert summary.language is Language.SWIFT
        assert engine.session is None

    def test_second_start_raises(self, engine):
        first = engine.start_session("swift")
        with pytest.raises(SessionAlreadyActiveError):
            engine.start_session("python")
        assert engine.session is first

    def test_replace_ends_previous(self, engine):
        engine.start_session("swift")
        session = engine.start_session("python", replace=True)
        assert engine.session is session
        assert session.language is Language.PYTHON


class TestPersistence:
    def test_shutdown_saves_snapshots(self, clock, context):
        store = MemoryPersistence()
        engine = CodeTimelineEngine(persistence=store, clock=clock)
        engine.track_evolution("let a = 1", "swift", context)
        engine.shutdown()
        assert store.saves == 1
        assert [s.code for s in store.snapshots] == ["let a = 1"]

    def test_shutdown_without_save(self, clock, context):
        store = MemoryPersistence()
        engine = CodeTimelineEngine(persistence=store, clock=clock)
        engine.track_evolution("let a = 1", "swift", context)
        engine.shutdown(save=False)
        assert store.saves == 0

    def test_replay_rebuilds_versions(self, clock, context, swift_source):
        store = MemoryPersistence()
        with CodeTimelineEngine(persistence=store, clock=clock) as first:
            for lines, functions in [(10, 1), (30, 3), (12, 1)]:
                clock.advance(minutes=5)
                first.track_evolution(swift_source(lines, functions), "swift", context)
            expected = [r.version for r in first.code_versions]
            current = first.timeline.current_version

        clock.advance(days=1)
        second = CodeTimelineEngine(persistence=store, clock=clock)
        assert second.initialize() == 3
        assert [r.version for r in second.code_versions] == expected
        assert second.timeline.current_version == current
        assert second.metrics.total_evolutions == 3
        assert second.session is None
        second.shutdown(save=False)

    def test_replay_keeps_explicit_version_types(self, clock, context):
        store = MemoryPersistence()
        first = CodeTimelineEngine(persistence=store, clock=clock)
        forced = first.track_evolution("let a = 1", "swift", context, VersionType.MAJOR)
        clock.advance(minutes=1)
        first.track_evolution("let a = 1", "swift", context)
        first.shutdown()

        assert forced.snapshot.version_type is VersionType.MAJOR
        assert [s.version for s in store.snapshots] == ["1.0.0", "1.0.1"]

        second = CodeTimelineEngine(persistence=store, clock=clock)
        second.initialize()
        assert str(second.timeline.current_version) == "1.0.1"
        clock.advance(minutes=1)
        result = second.track_evolution("let a = 1", "swift", context)
        assert result.version == "1.0.2"
        second.shutdown(save=False)

    def test_replay_after_eviction_keeps_versions(self, clock, context, swift_source):
        store = MemoryPersistence()
        first = CodeTimelineEngine(EngineConfig(history_limit=2), persistence=store, clock=clock)
        for lines, functions in [(10, 1), (30, 3), (50, 5)]:
            clock.advance(minutes=1)
            first.track_evolution(swift_source(lines, functions), "swift", context)
        current = first.timeline.current_version
        first.shutdown()
        assert len(store.snapshots) == 2

        second = CodeTimelineEngine(EngineConfig(history_limit=2), persistence=store, clock=clock)
        second.initialize()
        assert second.timeline.current_version == current
        second.shutdown(save=False)

    def test_replay_backdates_timeline(self, clock, context):
        store = MemoryPersistence()
        first = CodeTimelineEngine(persistence=store, clock=clock)
        first.track_evolution("let a = 1", "swift", context)
        first.shutdown()
        created = clock()

        clock.advance(days=30)
        second = CodeTimelineEngine(persistence=store, clock=clock)
        second.initialize()
        assert second.timeline.created_at == created

    def test_without_backend(self, engine):
        assert engine.initialize() == 0

    def test_shutdown_ends_session(self, clock):
        engine = CodeTimelineEngine(EngineConfig(heartbeat_interval=0.05), clock=clock)
        engine.start_session("swift")
        engine.shutdown()
        assert engine.session is None
