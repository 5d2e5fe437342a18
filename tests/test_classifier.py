"""Tests for evolution classification and the snapshot store."""

from datetime import datetime, timedelta, timezone

import pytest

from code_timeline.analysis.languages import Language
from code_timeline.evolution.classifier import classify, evolution_type
from code_timeline.evolution.models import ChangeKind, CodeEvolution, EvolutionType, WorkspaceType
from code_timeline.evolution.store import SnapshotStore

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class TestClassify:
    def test_no_prior_is_initial(self, make_snapshot, swift_source):
        snapshot = make_snapshot(swift_source(10, 1))
        evolution = classify(snapshot, [])
        assert evolution.type is EvolutionType.INITIAL
        assert evolution.changes == {ChangeKind.CREATION}
        assert evolution.lines_added == 10
        assert evolution.functions_added == 1

    def test_swift_growth_is_expansion(self, make_snapshot, swift_source):
        """10 lines/1 function -> 30 lines/3 functions."""
        before = make_snapshot(swift_source(10, 1))
        after = make_snapshot(swift_source(30, 3), at=START + timedelta(minutes=5))
        evolution = classify(after, [before])

        assert evolution.type is EvolutionType.EXPANSION
        assert evolution.changes == {ChangeKind.ADDITION, ChangeKind.FUNCTION_ADDITION}
        assert evolution.lines_added == 20
        assert evolution.lines_removed == 0
        assert evolution.functions_added == 2
        assert evolution.functions_removed == 0

    def test_functions_split_out_with_few_lines_is_refactoring(self, make_snapshot, swift_source):
        before = make_snapshot(swift_source(20, 1))
        after = make_snapshot(swift_source(22, 3))
        evolution = classify(after, [before])
        assert ChangeKind.REFACTORING in evolution.changes
        # Expansion takes priority over refactoring.
        assert evolution.type is EvolutionType.EXPANSION

    def test_shrink_is_reduction(self, make_snapshot, swift_source):
        before = make_snapshot(swift_source(30, 3))
        after = make_snapshot(swift_source(12, 1))
        evolution = classify(after, [before])
        assert evolution.type is EvolutionType.REDUCTION
        assert evolution.changes == {ChangeKind.DELETION, ChangeKind.FUNCTION_REMOVAL}
        assert evolution.lines_removed == 18
        assert evolution.functions_removed == 2

    def test_same_shape_is_modification(self, make_snapshot):
        before = make_snapshot("let a = 1\nlet b = 2")
        after = make_snapshot("let a = 3\nlet b = 4")
        evolution = classify(after, [before])
        assert evolution.type is EvolutionType.MODIFICATION
        assert evolution.changes == {ChangeKind.MODIFICATION}

    def test_diffs_against_most_recent_prior(self, make_snapshot, swift_source):
        oldest = make_snapshot(swift_source(5, 0))
        latest = make_snapshot(swift_source(40, 2))
        current = make_snapshot(swift_source(40, 2))
        evolution = classify(current, [oldest, latest])
        assert evolution.type is EvolutionType.MODIFICATION

    def test_counts_are_never_negative(self):
        evolution = CodeEvolution(
            type=EvolutionType.MODIFICATION,
            changes=frozenset({ChangeKind.MODIFICATION}),
            complexity=1.7,
            lines_added=-3,
            functions_removed=-1,
        )
        assert evolution.complexity == 1.0
        assert evolution.lines_added == 0
        assert evolution.functions_removed == 0


class TestEvolutionType:
    @pytest.mark.parametrize(
        "changes,expected",
        [
            ({ChangeKind.CREATION}, EvolutionType.INITIAL),
            ({ChangeKind.DELETION, ChangeKind.FUNCTION_ADDITION}, EvolutionType.EXPANSION),
            ({ChangeKind.FUNCTION_REMOVAL}, EvolutionType.REDUCTION),
            ({ChangeKind.REFACTORING}, EvolutionType.REFACTORING),
            ({ChangeKind.MODIFICATION}, EvolutionType.MODIFICATION),
        ],
    )
    def test_priority(self, changes, expected):
        assert evolution_type(changes) is expected


class TestSnapshotStore:
    def test_evicts_oldest_when_full(self, make_snapshot):
        store = SnapshotStore(max_snapshots=3)
        for i in range(5):
            store.append(make_snapshot(f"let v = {i}", at=START + timedelta(minutes=i)))
        assert len(store) == 3
        assert [s.code for s in store] == ["let v = 2", "let v = 3", "let v = 4"]

    def test_recent_filters_language_and_keeps_order(self, make_snapshot):
        store = SnapshotStore()
        store.append(make_snapshot("a", Language.SWIFT))
        store.append(make_snapshot("b", Language.PYTHON))
        store.append(make_snapshot("c", Language.SWIFT))
        store.append(make_snapshot("d", Language.SWIFT))

        assert [s.code for s in store.recent(Language.SWIFT, limit=2)] == ["c", "d"]
        assert [s.code for s in store.recent()] == ["a", "b", "c", "d"]
        assert store.recent(limit=0) == []

    def test_prior_is_same_language_window(self, make_snapshot):
        store = SnapshotStore()
        for i in range(8):
            store.append(make_snapshot(str(i), Language.GO))
        store.append(make_snapshot("py", Language.PYTHON))
        prior = store.prior(Language.GO, limit=5)
        assert [s.code for s in prior] == ["3", "4", "5", "6", "7"]

    def test_since_filters_time_and_workspace(self, make_snapshot):
        store = SnapshotStore()
        store.append(make_snapshot("old", at=START - timedelta(days=10)))
        store.append(make_snapshot("code", at=START))
        store.append(make_snapshot("notes", at=START, workspace_type=WorkspaceType.RESEARCH))

        cutoff = START - timedelta(days=1)
        assert [s.code for s in store.since(cutoff)] == ["code", "notes"]
        assert [s.code for s in store.since(cutoff, WorkspaceType.CODE)] == ["code"]

    def test_latest(self, make_snapshot):
        store = SnapshotStore()
        assert store.latest() is None
        store.append(make_snapshot("x"))
        assert store.latest().code == "x"
