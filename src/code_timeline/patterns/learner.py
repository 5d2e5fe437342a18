"""Learns code-style patterns from tracked snapshots and recalls relevant ones."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional, Sequence

from ..analysis.heuristics import code_features
from ..analysis.languages import Language
from ..evolution.models import CodeSnapshot
from .extraction import extract_code_patterns
from .models import CodePattern
from .table import MergeTable

logger = logging.getLogger(__name__)

MAX_RESULTS = 10
CONTEXT_SNAPSHOTS = 5


def relevance(a: frozenset[str], b: frozenset[str]) -> float:
    """Jaccard similarity of two feature sets (0.0 when both are empty)."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


class CodePatternLearner:
    """Owns the table of learned :class:`CodePattern` entries."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self.table: MergeTable[CodePattern] = MergeTable(max_entries=max_entries)

    def __len__(self) -> int:
        return len(self.table)

    @property
    def patterns(self) -> list[CodePattern]:
        return list(self.table)

    def learn(self, snapshot: CodeSnapshot) -> list[CodePattern]:
        """Record every style pattern visible in ``snapshot``; returns the table entries hit."""
        touched = []
        for candidate in extract_code_patterns(
            snapshot.code, snapshot.language, snapshot.timestamp
        ):
            entry, _ = self.table.upsert(candidate, snapshot.timestamp)
            touched.append(entry)
        logger.debug(
            "Learned %d code patterns from %s snapshot", len(touched), snapshot.language.value
        )
        return touched

    def relevant(self, text: str, language: Language, limit: int = MAX_RESULTS) -> list[CodePattern]:
        """Patterns of ``language`` whose features overlap the given code."""
        features = code_features(text, language)
        scored = [
            (relevance(pattern.features, features), pattern)
            for pattern in self.table
            if pattern.language is language
        ]
        scored = [item for item in scored if item[0] > 0]
        scored.sort(key=lambda item: (item[0], item[1].usage_count), reverse=True)
        return [pattern for _, pattern in scored[:limit]]

    def applicable(
        self,
        history: Sequence[CodeSnapshot],
        partial_code: str = "",
        limit: int = MAX_RESULTS,
    ) -> list[CodePattern]:
        """Patterns likely to matter for the next step, given recent history."""
        if not history:
            return []

        recent = list(history)[-CONTEXT_SNAPSHOTS:]
        languages = Counter(s.language for s in recent)
        context: set[str] = set()
        for snapshot in recent:
            context |= code_features(snapshot.code, snapshot.language)
        if partial_code.strip():
            dominant = languages.most_common(1)[0][0]
            context |= code_features(partial_code, dominant)

        context_features = frozenset(context)
        candidates = [
            pattern
            for pattern in self.table
            if pattern.language in languages and pattern.features & context_features
        ]
        candidates.sort(
            key=lambda p: (p.usage_count, relevance(p.features, context_features)), reverse=True
        )
        return candidates[:limit]
