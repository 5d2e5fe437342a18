"""Data models for snapshots and the evolution records derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..analysis.languages import Language
from ..clock import utcnow

if TYPE_CHECKING:
    from ..versioning.models import VersionType


class WorkspaceType(Enum):
    """Kind of workspace a conversation belongs to."""

    GENERAL = "general"
    CODE = "code"
    CREATIVE = "creative"
    RESEARCH = "research"

    @classmethod
    def parse(cls, name: str | WorkspaceType | None) -> WorkspaceType:
        if isinstance(name, WorkspaceType):
            return name
        try:
            return cls((name or "").strip().lower())
        except ValueError:
            return cls.GENERAL


@dataclass
class ConversationContext:
    """What the engine knows about the conversation a snapshot came from."""

    conversation_id: str
    workspace_type: WorkspaceType = WorkspaceType.GENERAL
    recent_messages: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CodeSnapshot:
    """One piece of code as it stood at ``timestamp``.

    ``version_type`` and ``version`` are filled in once the snapshot has been
    tracked, so a stored history replays to the versions it had.
    """

    code: str
    language: Language
    timestamp: datetime
    conversation_id: str
    workspace_type: WorkspaceType = WorkspaceType.GENERAL
    version_type: Optional[VersionType] = None
    version: Optional[str] = None


class ChangeKind(Enum):
    CREATION = "creation"
    ADDITION = "addition"
    DELETION = "deletion"
    MODIFICATION = "modification"
    REFACTORING = "refactoring"
    FUNCTION_ADDITION = "function_addition"
    FUNCTION_REMOVAL = "function_removal"


class EvolutionType(Enum):
    INITIAL = "initial"
    EXPANSION = "expansion"
    REDUCTION = "reduction"
    REFACTORING = "refactoring"
    MODIFICATION = "modification"


@dataclass(frozen=True)
class CodeEvolution:
    """Classification of one snapshot against its predecessor.

    Counts are clamped to be non-negative and complexity to [0, 1].
    """

    type: EvolutionType
    changes: frozenset[ChangeKind]
    complexity: float
    lines_added: int = 0
    lines_removed: int = 0
    functions_added: int = 0
    functions_removed: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "complexity", min(1.0, max(0.0, self.complexity)))
        for name in ("lines_added", "lines_removed", "functions_added", "functions_removed"):
            object.__setattr__(self, name, max(0, getattr(self, name)))


@dataclass(frozen=True)
class CodeVersionRecord:
    """One retained entry of the engine's code version log."""

    id: str
    code: str
    version: str
    language: Language
    evolution: CodeEvolution
    timestamp: datetime = field(default_factory=utcnow)
