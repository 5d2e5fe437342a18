"""Turn change batches, refactorings and raw code into pattern candidates."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Sequence

from ..analysis.heuristics import code_features, function_names, naming_style, variable_names
from ..analysis.languages import Language
from ..versioning.models import ChangeType, CodeChange
from .models import (
    CodePattern,
    CodePatternKind,
    DevelopmentPattern,
    PatternImpact,
    RefactoringEvent,
    RefactoringImpact,
)

BULK_CONFIDENCE = 0.7
REFACTORING_CONFIDENCE = 0.8

_COMMENT_STYLES = {
    "line_slash": "//",
    "block": "/*",
    "hash": "#",
    "docstring": '"""',
}


def bulk_change_patterns(changes: Sequence[CodeChange], at: datetime) -> list[DevelopmentPattern]:
    """One pattern per change type that occurs more than once in the batch."""
    by_type: dict[ChangeType, int] = Counter(change.type for change in changes)
    return [
        DevelopmentPattern(
            name=f"Bulk {change_type.value} changes",
            description=f"Multiple {change_type.value} changes in single version",
            confidence=BULK_CONFIDENCE,
            impact=PatternImpact.MEDIUM,
            last_occurrence=at,
        )
        for change_type, count in by_type.items()
        if count > 1
    ]


def refactoring_pattern(event: RefactoringEvent) -> DevelopmentPattern:
    impact = PatternImpact.HIGH if event.impact is RefactoringImpact.MAJOR else PatternImpact.MEDIUM
    return DevelopmentPattern(
        name=f"Refactoring: {event.reason.value}",
        description=event.description,
        confidence=REFACTORING_CONFIDENCE,
        impact=impact,
        last_occurrence=event.timestamp,
    )


def extract_code_patterns(text: str, language: Language, at: datetime) -> list[CodePattern]:
    """Detect the style habits visible in one piece of code."""
    features = code_features(text, language)
    lines = text.replace("\r\n", "\n").split("\n")
    found: list[tuple[CodePatternKind, str, str, str]] = []

    variables = variable_names(text, language)
    if variables:
        style, example = _dominant_style(variables)
        found.append(
            (CodePatternKind.NAMING, f"variables:{style}", f"Variables named in {style}", example)
        )

    functions = function_names(text)
    if functions:
        style, example = _dominant_style(functions)
        found.append(
            (CodePatternKind.NAMING, f"functions:{style}", f"Functions named in {style}", example)
        )
        declaration = next((line.strip() for line in lines if example in line), example)
        found.append(
            (CodePatternKind.STRUCTURE, "functions:declared", "Declares functions", declaration)
        )

    indent = _indentation(lines)
    if indent is not None:
        found.append(
            (CodePatternKind.INDENTATION, indent, f"Indents with {indent.replace(':', ' ')}", "")
        )

    braces = _brace_style(lines)
    if braces is not None:
        description = f"Opening braces on {braces.replace('_', ' ')}"
        found.append((CodePatternKind.FORMATTING, f"braces:{braces}", description, ""))

    for style, marker in _COMMENT_STYLES.items():
        if any(line.lstrip().startswith(marker) for line in lines):
            found.append(
                (CodePatternKind.COMMENTS, f"comments:{style}", f"Uses {marker} comments", marker)
            )

    return [
        CodePattern(
            kind=kind,
            language=language,
            signature=signature,
            description=description,
            template=template,
            features=features,
            first_seen=at,
            last_seen=at,
        )
        for kind, signature, description, template in found
    ]


def _dominant_style(names: Sequence[str]) -> tuple[str, str]:
    """Most common naming style and the first name written in it."""
    examples: dict[str, str] = {}
    counts: Counter[str] = Counter()
    for name in names:
        style = naming_style(name)
        counts[style] += 1
        examples.setdefault(style, name)
    style = counts.most_common(1)[0][0]
    return style, examples[style]


def _indentation(lines: Sequence[str]) -> str | None:
    """Tabs, or the narrowest space indent in use."""
    tabs = 0
    widths: list[int] = []
    for line in lines:
        if not line.strip():
            continue
        if line.startswith("\t"):
            tabs += 1
            continue
        leading = len(line) - len(line.lstrip(" "))
        if leading:
            widths.append(leading)
    if not tabs and not widths:
        return None
    if tabs > len(widths):
        return "tabs"
    return f"spaces:{min(widths)}"


def _brace_style(lines: Sequence[str]) -> str | None:
    same_line = sum(1 for line in lines if line.rstrip().endswith("{") and line.strip() != "{")
    next_line = sum(1 for line in lines if line.strip() == "{")
    if not same_line and not next_line:
        return None
    return "same_line" if same_line >= next_line else "next_line"
