"""Snapshot storage exceptions."""

from typing import Optional

from .base import CodeTimelineError


class PersistenceError(CodeTimelineError):
    """Base class for snapshot storage errors."""

    pass


class SchemaMigrationError(PersistenceError):
    """Raised when a stored record cannot be upgraded to the current schema."""

    def __init__(self, found: Optional[int], supported: int, reason: str):
        super().__init__(
            f"Cannot migrate record from schema version {found}",
            details={"found": str(found), "supported": str(supported), "reason": reason},
        )
        self.found = found
        self.supported = supported
        self.reason = reason
