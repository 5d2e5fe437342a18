"""Classify a snapshot against the snapshots that came before it."""

from __future__ import annotations

from typing import Sequence

from ..analysis.heuristics import complexity, function_count, line_count
from .models import ChangeKind, CodeEvolution, CodeSnapshot, EvolutionType

# Refactoring: functions grew while lines grew by less than this many per new function.
REFACTOR_LINES_PER_FUNCTION = 5


def classify(snapshot: CodeSnapshot, prior: Sequence[CodeSnapshot]) -> CodeEvolution:
    """Build the evolution record for ``snapshot``.

    ``prior`` holds earlier snapshots of the same language, oldest first;
    only the most recent one is diffed against. An empty ``prior`` yields
    an INITIAL record.
    """
    new_lines = line_count(snapshot.code)
    new_functions = function_count(snapshot.code, snapshot.language)
    score = complexity(snapshot.code, snapshot.language)

    if not prior:
        return CodeEvolution(
            type=EvolutionType.INITIAL,
            changes=frozenset({ChangeKind.CREATION}),
            complexity=score,
            lines_added=new_lines,
            functions_added=new_functions,
        )

    previous = prior[-1]
    old_lines = line_count(previous.code)
    old_functions = function_count(previous.code, snapshot.language)
    line_diff = new_lines - old_lines
    function_diff = new_functions - old_functions

    changes: set[ChangeKind] = set()
    if line_diff > 0:
        changes.add(ChangeKind.ADDITION)
    elif line_diff < 0:
        changes.add(ChangeKind.DELETION)

    if function_diff > 0:
        changes.add(ChangeKind.FUNCTION_ADDITION)
    elif function_diff < 0:
        changes.add(ChangeKind.FUNCTION_REMOVAL)

    if function_diff > 0 and line_diff < REFACTOR_LINES_PER_FUNCTION * function_diff:
        changes.add(ChangeKind.REFACTORING)

    if not changes:
        changes.add(ChangeKind.MODIFICATION)

    return CodeEvolution(
        type=evolution_type(changes),
        changes=frozenset(changes),
        complexity=score,
        lines_added=max(0, line_diff),
        lines_removed=max(0, -line_diff),
        functions_added=max(0, function_diff),
        functions_removed=max(0, -function_diff),
    )


def evolution_type(changes: set[ChangeKind] | frozenset[ChangeKind]) -> EvolutionType:
    """Pick the dominant type: expansion, then reduction, then refactoring."""
    if ChangeKind.CREATION in changes:
        return EvolutionType.INITIAL
    if ChangeKind.ADDITION in changes or ChangeKind.FUNCTION_ADDITION in changes:
        return EvolutionType.EXPANSION
    if ChangeKind.DELETION in changes or ChangeKind.FUNCTION_REMOVAL in changes:
        return EvolutionType.REDUCTION
    if ChangeKind.REFACTORING in changes:
        return EvolutionType.REFACTORING
    return EvolutionType.MODIFICATION
