"""Learned development, bug and code-style patterns."""

from .extraction import bulk_change_patterns, extract_code_patterns, refactoring_pattern
from .learner import CodePatternLearner, relevance
from .models import (
    BugCategory,
    BugPattern,
    BugSeverity,
    CodePattern,
    CodePatternKind,
    DevelopmentPattern,
    PatternImpact,
    RefactoringEvent,
    RefactoringImpact,
    RefactoringReason,
)
from .table import MergeTable

__all__ = [
    "BugCategory",
    "BugPattern",
    "BugSeverity",
    "CodePattern",
    "CodePatternKind",
    "CodePatternLearner",
    "DevelopmentPattern",
    "MergeTable",
    "PatternImpact",
    "RefactoringEvent",
    "RefactoringImpact",
    "RefactoringReason",
    "bulk_change_patterns",
    "extract_code_patterns",
    "refactoring_pattern",
    "relevance",
]
