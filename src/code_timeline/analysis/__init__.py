"""Language-agnostic surface analysis of source text."""

from .heuristics import (
    CodeProfile,
    code_features,
    complexity,
    conditional_count,
    function_count,
    function_names,
    line_count,
    line_delta,
    loop_count,
    naming_style,
    non_blank_line_count,
    partial_code_features,
    profile,
    variable_names,
)
from .languages import Language, language_for_suffix
from .refactoring import (
    OpportunitySeverity,
    OpportunityType,
    RefactoringOpportunity,
    find_opportunities,
)

__all__ = [
    "CodeProfile",
    "Language",
    "OpportunitySeverity",
    "OpportunityType",
    "RefactoringOpportunity",
    "code_features",
    "complexity",
    "conditional_count",
    "find_opportunities",
    "function_count",
    "function_names",
    "language_for_suffix",
    "line_count",
    "line_delta",
    "loop_count",
    "naming_style",
    "non_blank_line_count",
    "partial_code_features",
    "profile",
    "variable_names",
]
