"""Snapshots, their classification and the bounded snapshot log."""

from .classifier import classify, evolution_type
from .models import (
    ChangeKind,
    CodeEvolution,
    CodeSnapshot,
    CodeVersionRecord,
    ConversationContext,
    EvolutionType,
    WorkspaceType,
)
from .store import SnapshotStore

__all__ = [
    "ChangeKind",
    "CodeEvolution",
    "CodeSnapshot",
    "CodeVersionRecord",
    "ConversationContext",
    "EvolutionType",
    "SnapshotStore",
    "WorkspaceType",
    "classify",
    "evolution_type",
]
