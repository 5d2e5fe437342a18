"""Snapshot persistence: versioned records and the SQLite store."""

from typing import Protocol

from ..evolution.models import CodeSnapshot
from .database import SnapshotDB
from .records import SCHEMA_VERSION, SnapshotRecord, migrate_record


class SnapshotPersistence(Protocol):
    """What the engine needs from a storage backend."""

    def load(self) -> list[CodeSnapshot]: ...

    def save(self, snapshots: list[CodeSnapshot]) -> int: ...


__all__ = [
    "SCHEMA_VERSION",
    "SnapshotDB",
    "SnapshotPersistence",
    "SnapshotRecord",
    "migrate_record",
]
