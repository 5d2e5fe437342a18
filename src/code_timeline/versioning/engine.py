"""Version bumping, change analysis and release-cadence statistics.

Everything here is a pure function. The version type applied by
:func:`next_version` is always chosen by the caller; change analysis and
risk are reported alongside a version but never influence the bump.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Sequence

import numpy as np

from ..evolution.models import CodeEvolution, EvolutionType
from ..trends.windows import GrowthDirection
from .models import (
    ChangeAnalysis,
    ChangeType,
    CodeChange,
    Comparison,
    Compatibility,
    PlannedChange,
    PlannedChangeKind,
    RiskLevel,
    SemanticVersion,
    VersionComparison,
    VersionSuggestion,
    VersionTrend,
    VersionType,
)

MAX_CHANGE_COMPLEXITY = 10.0

# Risk thresholds
HIGH_RISK_CORE_FILES = 5
MEDIUM_RISK_CORE_FILES = 2
HIGH_RISK_LINES = 1000
MEDIUM_RISK_LINES = 500

# Evolution -> version type
BREAKING_COMPLEXITY = 0.9
MAJOR_COMPLEXITY = 0.8
MINOR_FUNCTION_ADDITIONS = 2

# Release cadence comparison window and ratios
CADENCE_WINDOW = 5
FASTER_RATIO = 0.8
SLOWER_RATIO = 1.2


def next_version(current: SemanticVersion, version_type: VersionType) -> SemanticVersion:
    """Apply a bump. PRERELEASE leaves the numeric triple untouched."""
    if version_type is VersionType.MAJOR:
        return SemanticVersion(current.major + 1, 0, 0)
    if version_type is VersionType.MINOR:
        return SemanticVersion(current.major, current.minor + 1, 0)
    if version_type is VersionType.PATCH:
        return SemanticVersion(current.major, current.minor, current.patch + 1)
    return SemanticVersion(current.major, current.minor, current.patch)


def change_complexity(changes: Sequence[CodeChange]) -> float:
    """Mean per-change complexity, capped at 10. An empty batch scores 0."""
    if not changes:
        return 0.0
    total = 0.0
    for change in changes:
        score = 0.1 * change.lines_changed
        score += 2.0 if change.type is ChangeType.ARCHITECTURE else 1.0
        score += 1.5 if change.touches_core else 1.0
        total += score
    return min(MAX_CHANGE_COMPLEXITY, total / len(changes))


def assess_risk(changes: Sequence[CodeChange]) -> RiskLevel:
    core_files = sum(1 for c in changes if c.touches_core)
    lines = sum(c.lines_changed for c in changes)
    has_architecture = any(c.type is ChangeType.ARCHITECTURE for c in changes)

    if has_architecture or core_files > HIGH_RISK_CORE_FILES or lines > HIGH_RISK_LINES:
        return RiskLevel.HIGH
    if core_files > MEDIUM_RISK_CORE_FILES or lines > MEDIUM_RISK_LINES:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def analyze_changes(changes: Sequence[CodeChange]) -> ChangeAnalysis:
    return ChangeAnalysis(
        total_changes=len(changes),
        lines_changed=sum(c.lines_changed for c in changes),
        files_affected=len({c.file_path for c in changes}),
        change_types=frozenset(c.type for c in changes),
        complexity=change_complexity(changes),
        risk_level=assess_risk(changes),
    )


def is_breaking(evolution: CodeEvolution) -> bool:
    if evolution.functions_removed > 0:
        return True
    if (
        evolution.type is EvolutionType.REDUCTION
        and evolution.lines_removed > 2 * evolution.lines_added
    ):
        return True
    return evolution.complexity > BREAKING_COMPLEXITY


def classify_change(evolution: CodeEvolution) -> VersionType:
    """Derive a version type from an evolution record.

    Used when a snapshot is tracked without an explicit version type.
    """
    if is_breaking(evolution):
        return VersionType.MAJOR
    if (
        evolution.functions_added > MINOR_FUNCTION_ADDITIONS
        or evolution.type is EvolutionType.EXPANSION
    ):
        return VersionType.MINOR
    if evolution.complexity > MAJOR_COMPLEXITY:
        return VersionType.MAJOR
    return VersionType.PATCH


def version_distance(a: SemanticVersion, b: SemanticVersion) -> int:
    return (
        abs(a.major - b.major) * 10000 + abs(a.minor - b.minor) * 100 + abs(a.patch - b.patch)
    )


def compare_versions(a: SemanticVersion, b: SemanticVersion) -> VersionComparison:
    """Compare ``a`` against ``b`` (``a`` is OLDER, SAME or NEWER)."""
    if a < b:
        result = Comparison.OLDER
    elif a > b:
        result = Comparison.NEWER
    else:
        result = Comparison.SAME

    if a.major != b.major:
        compatibility = Compatibility.INCOMPATIBLE
    elif a.minor != b.minor:
        compatibility = Compatibility.BACKWARD_COMPATIBLE
    else:
        compatibility = Compatibility.FULLY_COMPATIBLE

    return VersionComparison(
        result=result, distance=version_distance(a, b), compatibility=compatibility
    )


def suggest_next_version(
    current: SemanticVersion, planned: Sequence[PlannedChange]
) -> VersionSuggestion:
    """Recommend the bump implied by a set of planned changes."""
    kinds = Counter(change.kind for change in planned)
    breaking = kinds[PlannedChangeKind.BREAKING]
    features = kinds[PlannedChangeKind.FEATURE]

    if breaking:
        version_type = VersionType.MAJOR
        reasoning = f"{breaking} breaking change(s) require a major version"
    elif features:
        version_type = VersionType.MINOR
        reasoning = f"{features} new feature(s) warrant a minor version"
    else:
        version_type = VersionType.PATCH
        reasoning = "Only fixes and improvements planned"

    if planned:
        confidence = 0.5 + 0.4 * (breaking + features) / len(planned)
    else:
        confidence = 0.5

    return VersionSuggestion(
        current=current,
        suggested=next_version(current, version_type),
        version_type=version_type,
        confidence=min(1.0, confidence),
        reasoning=reasoning,
    )


def version_trend(
    releases: Sequence[tuple[datetime, VersionType]],
    timeframe_days: int,
    now: datetime,
) -> VersionTrend:
    """Summarize releases whose timestamp falls within the last ``timeframe_days``."""
    cutoff = now - timedelta(days=timeframe_days)
    window = sorted((r for r in releases if r[0] >= cutoff), key=lambda r: r[0])

    counts = Counter(version_type for _, version_type in window)
    total = len(window)
    distribution = {
        vt: (counts[vt] / total if total else 0.0)
        for vt in (VersionType.MAJOR, VersionType.MINOR, VersionType.PATCH)
    }

    major, patch = counts[VersionType.MAJOR], counts[VersionType.PATCH]
    stability = patch / (major + patch) if major + patch else 1.0

    return VersionTrend(
        release_frequency=total / timeframe_days if timeframe_days > 0 else 0.0,
        change_distribution=distribution,
        stability_score=stability,
        direction=_cadence([ts for ts, _ in window]),
    )


def _cadence(timestamps: list[datetime]) -> GrowthDirection:
    """Compare recent release intervals with early ones (shorter = INCREASING)."""
    if len(timestamps) < 3:
        return GrowthDirection.STABLE
    intervals = np.diff([ts.timestamp() for ts in timestamps])
    older = float(intervals[:CADENCE_WINDOW].mean())
    recent = float(intervals[-CADENCE_WINDOW:].mean())
    if older <= 0:
        return GrowthDirection.STABLE
    if recent < FASTER_RATIO * older:
        return GrowthDirection.INCREASING
    if recent > SLOWER_RATIO * older:
        return GrowthDirection.DECREASING
    return GrowthDirection.STABLE
