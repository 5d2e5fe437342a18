"""Refactoring opportunity detection over raw source text."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum

from .heuristics import complexity, conditional_count, function_names, line_count, naming_style
from .languages import Language

DUPLICATE_WINDOW = 3
MIN_DUPLICATE_CHARS = 30
MAX_DUPLICATES_REPORTED = 3
MAX_CONDITIONALS = 10
LOCATION_SPAN = 5

# Accepted function naming styles per language; "lowercase" is always accepted.
NAMING_CONVENTIONS: dict[Language, tuple[str, ...]] = {
    Language.PYTHON: ("snake_case",),
    Language.RUST: ("snake_case",),
    Language.SWIFT: ("camelCase",),
    Language.JAVASCRIPT: ("camelCase", "PascalCase"),
    Language.TYPESCRIPT: ("camelCase", "PascalCase"),
    Language.GO: ("camelCase", "PascalCase"),
    Language.KOTLIN: ("camelCase",),
}


class OpportunityType(Enum):
    REDUCE_COMPLEXITY = "reduce_complexity"
    REMOVE_DUPLICATION = "remove_duplication"
    IMPROVE_NAMING = "improve_naming"
    SIMPLIFY_CONDITIONS = "simplify_conditions"


class OpportunitySeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RefactoringOpportunity:
    type: OpportunityType
    description: str
    location: str
    severity: OpportunitySeverity
    suggested_approach: str


def find_opportunities(
    code: str, language: Language, complexity_threshold: float = 0.8
) -> list[RefactoringOpportunity]:
    """Run every detector; results are ordered by detector, not by severity."""
    found: list[RefactoringOpportunity] = []

    score = complexity(code, language)
    if score > complexity_threshold:
        mid = line_count(code) // 2
        found.append(
            RefactoringOpportunity(
                type=OpportunityType.REDUCE_COMPLEXITY,
                description=f"High complexity detected ({score:.2f})",
                location=f"Lines {max(1, mid - LOCATION_SPAN)}-{mid + LOCATION_SPAN}",
                severity=OpportunitySeverity.HIGH,
                suggested_approach="Extract method pattern",
            )
        )

    found.extend(duplicate_blocks(code))

    naming = naming_issues(code, language)
    if naming is not None:
        found.append(naming)

    conditionals = conditional_count(code)
    if conditionals > MAX_CONDITIONALS:
        found.append(
            RefactoringOpportunity(
                type=OpportunityType.SIMPLIFY_CONDITIONS,
                description=f"{conditionals} conditional branches",
                location="Whole snippet",
                severity=OpportunitySeverity.MEDIUM,
                suggested_approach="Replace nested conditionals with guard clauses or lookup tables",
            )
        )

    return found


def duplicate_blocks(code: str) -> list[RefactoringOpportunity]:
    """Report runs of identical consecutive lines that appear more than once."""
    lines = [
        (number, line.strip())
        for number, line in enumerate(code.replace("\r\n", "\n").split("\n"), start=1)
        if line.strip()
    ]
    positions: dict[str, list[int]] = defaultdict(list)
    for i in range(len(lines) - DUPLICATE_WINDOW + 1):
        window = "\n".join(text for _, text in lines[i : i + DUPLICATE_WINDOW])
        if len(window) < MIN_DUPLICATE_CHARS:
            continue
        # Overlapping repeats (e.g. a run of identical lines) count once.
        if positions[window] and i - positions[window][-1] < DUPLICATE_WINDOW:
            continue
        positions[window].append(i)

    results = []
    for window, starts in positions.items():
        if len(starts) < 2:
            continue
        first, second = starts[0], starts[1]
        results.append(
            RefactoringOpportunity(
                type=OpportunityType.REMOVE_DUPLICATION,
                description=f"Block of {DUPLICATE_WINDOW} lines repeated {len(starts)} times",
                location=(
                    f"Lines {lines[first][0]}-{lines[first + DUPLICATE_WINDOW - 1][0]} and "
                    f"{lines[second][0]}-{lines[second + DUPLICATE_WINDOW - 1][0]}"
                ),
                severity=OpportunitySeverity.MEDIUM,
                suggested_approach="Extract the shared block into a function",
            )
        )
        if len(results) >= MAX_DUPLICATES_REPORTED:
            break
    return results


def naming_issues(code: str, language: Language) -> RefactoringOpportunity | None:
    """Flag function names that break the language's usual naming convention."""
    accepted = NAMING_CONVENTIONS.get(language)
    if accepted is None:
        return None
    offenders = [
        name
        for name in dict.fromkeys(function_names(code))
        if naming_style(name) not in accepted + ("lowercase",)
    ]
    if not offenders:
        return None
    return RefactoringOpportunity(
        type=OpportunityType.IMPROVE_NAMING,
        description=f"Function names break {accepted[0]} convention: {', '.join(offenders[:3])}",
        location="Function declarations",
        severity=OpportunitySeverity.LOW,
        suggested_approach=f"Rename to follow {accepted[0]} convention",
    )
