"""Semantic versions, change analysis and release trends."""

from .engine import (
    analyze_changes,
    assess_risk,
    change_complexity,
    classify_change,
    compare_versions,
    next_version,
    suggest_next_version,
    version_distance,
    version_trend,
)
from .models import (
    INITIAL_VERSION,
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

__all__ = [
    "INITIAL_VERSION",
    "ChangeAnalysis",
    "ChangeType",
    "CodeChange",
    "Comparison",
    "Compatibility",
    "PlannedChange",
    "PlannedChangeKind",
    "RiskLevel",
    "SemanticVersion",
    "VersionComparison",
    "VersionSuggestion",
    "VersionTrend",
    "VersionType",
    "analyze_changes",
    "assess_risk",
    "change_complexity",
    "classify_change",
    "compare_versions",
    "next_version",
    "suggest_next_version",
    "version_distance",
    "version_trend",
]
