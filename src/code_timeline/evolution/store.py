"""Bounded, append-only log of code snapshots."""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Iterator, Optional

from ..analysis.languages import Language
from .models import CodeSnapshot, WorkspaceType


class SnapshotStore:
    """Keeps the most recent ``max_snapshots`` snapshots in arrival order.

    When full, the oldest snapshot is evicted. Not thread-safe on its own;
    the engine serializes access.
    """

    def __init__(self, max_snapshots: int = 1000) -> None:
        self._snapshots: deque[CodeSnapshot] = deque(maxlen=max_snapshots)

    def append(self, snapshot: CodeSnapshot) -> None:
        self._snapshots.append(snapshot)

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[CodeSnapshot]:
        return iter(self._snapshots)

    def latest(self) -> Optional[CodeSnapshot]:
        return self._snapshots[-1] if self._snapshots else None

    def recent(self, language: Optional[Language] = None, limit: int = 50) -> list[CodeSnapshot]:
        """Most recent ``limit`` snapshots (oldest first), optionally for one language."""
        if limit <= 0:
            return []
        selected = [s for s in self._snapshots if language is None or s.language == language]
        return selected[-limit:]

    def prior(self, language: Language, limit: int = 5) -> list[CodeSnapshot]:
        """The ``limit`` most recent stored snapshots of ``language``, oldest first."""
        return self.recent(language, limit)

    def since(
        self, cutoff: datetime, workspace_type: Optional[WorkspaceType] = None
    ) -> list[CodeSnapshot]:
        return [
            s
            for s in self._snapshots
            if s.timestamp >= cutoff
            and (workspace_type is None or s.workspace_type == workspace_type)
        ]
