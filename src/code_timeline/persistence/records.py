"""Versioned storage records for snapshots.

Every stored snapshot is a :class:`SnapshotRecord`, written as JSON with an
explicit ``schema_version``. Reading goes through :func:`migrate_record`,
which upgrades older layouts field by field before a typed record is built,
so nothing past this module ever sees a raw mapping.

Schema history:
    1. ``thread_id`` instead of ``conversation_id``; no ``workspace_type``.
    2. ``conversation_id`` and ``workspace_type``.
    3. ``version_type`` and ``version`` assigned when the snapshot was tracked
       (absent for older records, which replay with derived bumps).
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..analysis.languages import Language
from ..evolution.models import CodeSnapshot, WorkspaceType
from ..exceptions import SchemaMigrationError
from ..versioning.models import VersionType

SCHEMA_VERSION = 3

_REQUIRED_FIELDS = ("code", "language", "timestamp", "conversation_id", "workspace_type")


@dataclass(frozen=True)
class SnapshotRecord:
    schema_version: int
    code: str
    language: str
    timestamp: str
    conversation_id: str
    workspace_type: str
    version_type: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: CodeSnapshot) -> SnapshotRecord:
        return cls(
            schema_version=SCHEMA_VERSION,
            code=snapshot.code,
            language=snapshot.language.value,
            timestamp=snapshot.timestamp.isoformat(),
            conversation_id=snapshot.conversation_id,
            workspace_type=snapshot.workspace_type.value,
            version_type=snapshot.version_type.value if snapshot.version_type else None,
            version=snapshot.version,
        )

    def to_snapshot(self) -> CodeSnapshot:
        try:
            timestamp = datetime.fromisoformat(self.timestamp)
        except ValueError as e:
            raise SchemaMigrationError(self.schema_version, SCHEMA_VERSION, str(e))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return CodeSnapshot(
            code=self.code,
            language=Language.parse(self.language),
            timestamp=timestamp,
            conversation_id=self.conversation_id,
            workspace_type=WorkspaceType.parse(self.workspace_type),
            version_type=_version_type(self.version_type),
            version=self.version,
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> SnapshotRecord:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaMigrationError(None, SCHEMA_VERSION, f"invalid JSON: {e}")
        return migrate_record(raw)


def _v1_to_v2(raw: dict[str, Any]) -> dict[str, Any]:
    upgraded = dict(raw)
    upgraded["conversation_id"] = upgraded.pop("thread_id", "")
    upgraded.setdefault("workspace_type", WorkspaceType.GENERAL.value)
    upgraded["schema_version"] = 2
    return upgraded


def _v2_to_v3(raw: dict[str, Any]) -> dict[str, Any]:
    upgraded = dict(raw)
    upgraded.setdefault("version_type", None)
    upgraded.setdefault("version", None)
    upgraded["schema_version"] = 3
    return upgraded


def _version_type(value: Optional[str]) -> Optional[VersionType]:
    try:
        return VersionType(value) if value else None
    except ValueError:
        return None


# from_version -> upgrade to from_version + 1
_MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _v1_to_v2,
    2: _v2_to_v3,
}


def migrate_record(raw: Any) -> SnapshotRecord:
    """Upgrade a decoded record of any known schema version to the current one.

    Raises:
        SchemaMigrationError: If the record is not an object, comes from a newer
            schema, or lacks required fields after migration.
    """
    if not isinstance(raw, dict):
        raise SchemaMigrationError(None, SCHEMA_VERSION, "record is not an object")

    version = raw.get("schema_version", 1)
    if not isinstance(version, int) or version < 1:
        raise SchemaMigrationError(None, SCHEMA_VERSION, f"bad schema_version {version!r}")
    if version > SCHEMA_VERSION:
        raise SchemaMigrationError(version, SCHEMA_VERSION, "record is newer than this release")

    record = dict(raw)
    while version < SCHEMA_VERSION:
        record = _MIGRATIONS[version](record)
        version = record["schema_version"]

    missing = [name for name in _REQUIRED_FIELDS if name not in record]
    if missing:
        raise SchemaMigrationError(
            raw.get("schema_version", 1), SCHEMA_VERSION, f"missing fields: {', '.join(missing)}"
        )

    return SnapshotRecord(
        schema_version=SCHEMA_VERSION,
        code=str(record["code"]),
        language=str(record["language"]),
        timestamp=str(record["timestamp"]),
        conversation_id=str(record["conversation_id"]),
        workspace_type=str(record["workspace_type"]),
        version_type=_optional_str(record.get("version_type")),
        version=_optional_str(record.get("version")),
    )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
