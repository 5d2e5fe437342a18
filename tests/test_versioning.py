"""Tests for semantic versions, change analysis and release cadence."""

from datetime import datetime, timedelta, timezone

import pytest

from code_timeline.evolution.models import ChangeKind, CodeEvolution, EvolutionType
from code_timeline.trends.windows import GrowthDirection
from code_timeline.versioning.engine import (
    analyze_changes,
    assess_risk,
    change_complexity,
    classify_change,
    compare_versions,
    next_version,
    suggest_next_version,
    version_trend,
)
from code_timeline.versioning.models import (
    INITIAL_VERSION,
    ChangeType,
    CodeChange,
    Comparison,
    Compatibility,
    PlannedChange,
    PlannedChangeKind,
    RiskLevel,
    SemanticVersion,
    VersionType,
)

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _evolution(type_, **counts):
    return CodeEvolution(
        type=type_, changes=frozenset({ChangeKind.MODIFICATION}), complexity=0.2, **counts
    )


class TestSemanticVersion:
    def test_parse_full(self):
        v = SemanticVersion.parse("2.4.1-beta.1+build.7")
        assert v.triple == (2, 4, 1)
        assert v.prerelease == "beta.1"
        assert v.build == "build.7"
        assert str(v) == "2.4.1-beta.1+build.7"

    @pytest.mark.parametrize("text", ["", "1.2", "one.two.three", "1.2.3.4"])
    def test_malformed_falls_back_to_one(self, text):
        assert SemanticVersion.parse(text) == SemanticVersion(1, 0, 0)

    def test_labels_do_not_affect_ordering(self):
        assert SemanticVersion(1, 2, 3, prerelease="rc1") == SemanticVersion(1, 2, 3)
        assert hash(SemanticVersion(1, 2, 3, build="x")) == hash(SemanticVersion(1, 2, 3))

    def test_ordering(self):
        assert SemanticVersion(1, 9, 9) < SemanticVersion(2, 0, 0)
        assert SemanticVersion(1, 2, 10) > SemanticVersion(1, 2, 9)

    def test_initial_version(self):
        assert str(INITIAL_VERSION) == "0.1.0"


class TestNextVersion:
    @pytest.mark.parametrize(
        "version_type,expected",
        [
            (VersionType.MAJOR, (2, 0, 0)),
            (VersionType.MINOR, (1, 3, 0)),
            (VersionType.PATCH, (1, 2, 4)),
            (VersionType.PRERELEASE, (1, 2, 3)),
        ],
    )
    def test_bumps(self, version_type, expected):
        assert next_version(SemanticVersion(1, 2, 3), version_type).triple == expected

    def test_sequence_is_monotone(self):
        current = INITIAL_VERSION
        for vt in [VersionType.PATCH, VersionType.MINOR, VersionType.PRERELEASE, VersionType.MAJOR]:
            bumped = next_version(current, vt)
            assert bumped >= current
            current = bumped
        assert str(current) == "1.0.0"


class TestChangeAnalysis:
    def test_empty_batch(self):
        assert change_complexity([]) == 0.0
        analysis = analyze_changes([])
        assert analysis.total_changes == 0
        assert analysis.risk_level is RiskLevel.LOW

    def test_per_change_complexity(self):
        change = CodeChange("src/core/engine.py", ChangeType.ARCHITECTURE, 10, 0)
        # 0.1 * 10 lines + 2.0 architecture + 1.5 core
        assert change_complexity([change]) == pytest.approx(4.5)

    def test_complexity_capped_at_ten(self):
        change = CodeChange("a.py", ChangeType.FEATURE, 500, 0)
        assert change_complexity([change]) == 10.0

    def test_architecture_is_high_risk(self):
        assert assess_risk([CodeChange("a.py", ChangeType.ARCHITECTURE)]) is RiskLevel.HIGH

    def test_line_volume_risk(self):
        assert assess_risk([CodeChange("a.py", ChangeType.FEATURE, 600)]) is RiskLevel.MEDIUM
        assert assess_risk([CodeChange("a.py", ChangeType.FEATURE, 1200)]) is RiskLevel.HIGH

    def test_files_affected_is_distinct(self):
        analysis = analyze_changes(
            [
                CodeChange("a.py", ChangeType.FEATURE, 1),
                CodeChange("a.py", ChangeType.BUGFIX, 1),
                CodeChange("b.py", ChangeType.FEATURE, 1),
            ]
        )
        assert analysis.files_affected == 2
        assert analysis.change_types == {ChangeType.FEATURE, ChangeType.BUGFIX}


class TestClassifyChange:
    def test_removed_functions_are_major(self):
        evolution = _evolution(EvolutionType.REDUCTION, functions_removed=1)
        assert classify_change(evolution) is VersionType.MAJOR

    def test_expansion_is_minor(self):
        evolution = _evolution(EvolutionType.EXPANSION, lines_added=5)
        assert classify_change(evolution) is VersionType.MINOR

    def test_small_edit_is_patch(self):
        assert classify_change(_evolution(EvolutionType.MODIFICATION)) is VersionType.PATCH

    def test_large_cut_is_major(self):
        evolution = _evolution(EvolutionType.REDUCTION, lines_removed=30, lines_added=0)
        assert classify_change(evolution) is VersionType.MAJOR


class TestCompareVersions:
    def test_major_difference(self):
        result = compare_versions(SemanticVersion(1, 0, 0), SemanticVersion(2, 1, 3))
        assert result.result is Comparison.OLDER
        assert result.distance == 10000 + 100 + 3
        assert result.compatibility is Compatibility.INCOMPATIBLE

    def test_minor_difference(self):
        result = compare_versions(SemanticVersion(1, 3, 0), SemanticVersion(1, 2, 0))
        assert result.result is Comparison.NEWER
        assert result.compatibility is Compatibility.BACKWARD_COMPATIBLE

    def test_same(self):
        result = compare_versions(SemanticVersion(1, 2, 3), SemanticVersion(1, 2, 3, "rc"))
        assert result.result is Comparison.SAME
        assert result.distance == 0
        assert result.compatibility is Compatibility.FULLY_COMPATIBLE


class TestSuggestNextVersion:
    def test_breaking_wins(self):
        suggestion = suggest_next_version(
            SemanticVersion(1, 4, 2),
            [
                PlannedChange(PlannedChangeKind.BREAKING),
                PlannedChange(PlannedChangeKind.FEATURE),
                PlannedChange(PlannedChangeKind.FIX),
                PlannedChange(PlannedChangeKind.FIX),
            ],
        )
        assert suggestion.version_type is VersionType.MAJOR
        assert str(suggestion.suggested) == "2.0.0"
        assert suggestion.confidence == pytest.approx(0.5 + 0.4 * 2 / 4)

    def test_fixes_only_is_patch(self):
        suggestion = suggest_next_version(
            SemanticVersion(1, 4, 2), [PlannedChange(PlannedChangeKind.FIX)]
        )
        assert suggestion.version_type is VersionType.PATCH
        assert suggestion.confidence == pytest.approx(0.5)

    def test_nothing_planned(self):
        suggestion = suggest_next_version(SemanticVersion(1, 0, 0), [])
        assert suggestion.version_type is VersionType.PATCH
        assert suggestion.confidence == 0.5


class TestVersionTrend:
    def test_distribution_and_stability(self):
        releases = [
            (NOW - timedelta(days=d), vt)
            for d, vt in [
                (1, VersionType.PATCH),
                (2, VersionType.PATCH),
                (3, VersionType.MINOR),
                (4, VersionType.MAJOR),
                (60, VersionType.MAJOR),
            ]
        ]
        trend = version_trend(releases, timeframe_days=30, now=NOW)
        assert trend.release_frequency == pytest.approx(4 / 30)
        assert trend.change_distribution[VersionType.PATCH] == pytest.approx(0.5)
        assert trend.change_distribution[VersionType.MAJOR] == pytest.approx(0.25)
        assert trend.stability_score == pytest.approx(2 / 3)

    def test_no_releases(self):
        trend = version_trend([], timeframe_days=30, now=NOW)
        assert trend.release_frequency == 0.0
        assert trend.stability_score == 1.0
        assert trend.direction is GrowthDirection.STABLE

    def test_accelerating_cadence(self):
        offsets = [0, 10, 20, 30, 32, 34, 36]
        start = NOW - timedelta(days=40)
        releases = [(start + timedelta(days=o), VersionType.PATCH) for o in offsets]
        trend = version_trend(releases, timeframe_days=60, now=NOW)
        assert trend.direction is GrowthDirection.INCREASING
