"""Tests for versioned snapshot records and the SQLite snapshot store."""

import dataclasses
import json
import sqlite3
import tempfile
import threading
from datetime import datetime, timezone

import pytest

from code_timeline.analysis.languages import Language
from code_timeline.evolution.models import WorkspaceType
from code_timeline.exceptions import PersistenceError, SchemaMigrationError
from code_timeline.persistence import SnapshotDB
from code_timeline.persistence.records import SCHEMA_VERSION, SnapshotRecord, migrate_record
from code_timeline.versioning.models import VersionType

AT = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


class TestSnapshotRecord:
    def test_round_trip(self, make_snapshot):
        snapshot = make_snapshot("let a = 1", Language.SWIFT, at=AT)
        record = SnapshotRecord.from_snapshot(snapshot)
        assert record.schema_version == SCHEMA_VERSION
        assert SnapshotRecord.from_json(record.to_json()).to_snapshot() == snapshot

    def test_v1_record_is_upgraded(self):
        raw = {
            "schema_version": 1,
            "code": "print(1)",
            "language": "python",
            "timestamp": "2024-03-01T09:30:00+00:00",
            "thread_id": "thread-9",
        }
        record = migrate_record(raw)
        assert record.schema_version == SCHEMA_VERSION
        assert record.conversation_id == "thread-9"
        assert record.workspace_type == "general"

        snapshot = record.to_snapshot()
        assert snapshot.language is Language.PYTHON
        assert snapshot.workspace_type is WorkspaceType.GENERAL
        assert snapshot.timestamp == AT

    def test_v2_record_replays_with_derived_bump(self):
        record = migrate_record(
            {
                "schema_version": 2,
                "code": "let a = 1",
                "language": "swift",
                "timestamp": AT.isoformat(),
                "conversation_id": "c",
                "workspace_type": "code",
            }
        )
        assert record.schema_version == SCHEMA_VERSION == 3
        snapshot = record.to_snapshot()
        assert snapshot.version_type is None
        assert snapshot.version is None

    def test_tracked_version_is_stored(self, make_snapshot):
        snapshot = dataclasses.replace(
            make_snapshot("let a = 1", at=AT), version_type=VersionType.MAJOR, version="1.0.0"
        )
        record = SnapshotRecord.from_snapshot(snapshot)
        assert json.loads(record.to_json())["version_type"] == "major"
        restored = SnapshotRecord.from_json(record.to_json()).to_snapshot()
        assert restored.version_type is VersionType.MAJOR
        assert restored.version == "1.0.0"

    def test_missing_version_is_treated_as_v1(self):
        record = migrate_record(
            {"code": "", "language": "go", "timestamp": AT.isoformat(), "thread_id": "t"}
        )
        assert record.conversation_id == "t"

    def test_naive_timestamp_is_utc(self):
        record = migrate_record(
            {
                "schema_version": 2,
                "code": "",
                "language": "swift",
                "timestamp": "2024-03-01T09:30:00",
                "conversation_id": "c",
                "workspace_type": "code",
            }
        )
        assert record.to_snapshot().timestamp == AT

    def test_newer_schema_is_rejected(self):
        with pytest.raises(SchemaMigrationError) as exc_info:
            migrate_record({"schema_version": SCHEMA_VERSION + 1})
        assert exc_info.value.found == SCHEMA_VERSION + 1

    def test_missing_fields_are_rejected(self):
        with pytest.raises(SchemaMigrationError):
            migrate_record({"schema_version": 2, "code": "x"})

    def test_bad_payloads(self):
        with pytest.raises(SchemaMigrationError):
            SnapshotRecord.from_json("not json")
        with pytest.raises(SchemaMigrationError):
            SnapshotRecord.from_json(json.dumps([1, 2]))

    def test_bad_timestamp(self):
        record = SnapshotRecord(2, "", "swift", "yesterday", "c", "code")
        with pytest.raises(SchemaMigrationError):
            record.to_snapshot()

    def test_unknown_enum_values_fall_back(self):
        record = SnapshotRecord(2, "", "cobol", AT.isoformat(), "c", "gaming", "huge")
        snapshot = record.to_snapshot()
        assert snapshot.language is Language.OTHER
        assert snapshot.version_type is None
        assert snapshot.workspace_type is WorkspaceType.GENERAL


class TestSnapshotDB:
    def test_creates_data_dir_with_gitignore(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir) as db:
                assert db.exists
                assert (db.db_dir / ".gitignore").read_text() == "*\n"

    def test_schema_version_row(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir) as db:
                row = db.conn.execute("SELECT version FROM schema_version").fetchone()
                assert row["version"] == 1

    def test_save_replaces_and_load_preserves_order(self, make_snapshot):
        first = [make_snapshot(f"let v = {i}", at=AT) for i in range(3)]
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir) as db:
                assert db.save(first) == 3
                assert db.save(first[1:]) == 2
                assert [s.code for s in db.load()] == ["let v = 1", "let v = 2"]

            with SnapshotDB(tmpdir) as db:
                assert db.count() == 2

    def test_append(self, make_snapshot):
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir, data_dir="custom") as db:
                db.append(make_snapshot("a", at=AT))
                db.append(make_snapshot("b", at=AT))
                assert [s.code for s in db.load()] == ["a", "b"]
                assert db.db_path.parent.name == "custom"

    def test_v1_rows_are_upgraded_on_load(self):
        legacy = json.dumps(
            {
                "schema_version": 1,
                "code": "fn main() {}",
                "language": "rust",
                "timestamp": AT.isoformat(),
                "thread_id": "old-thread",
            }
        )
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir) as db:
                db.conn.execute(
                    "INSERT INTO snapshots (record_version, timestamp, language, payload) "
                    "VALUES (1, ?, 'rust', ?)",
                    (AT.isoformat(), legacy),
                )
                db.conn.commit()
                (snapshot,) = db.load()
                assert snapshot.conversation_id == "old-thread"
                assert snapshot.language is Language.RUST

    def test_newer_database_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir) as db:
                db.conn.execute("UPDATE schema_version SET version = 99")
                db.conn.commit()
            with pytest.raises(PersistenceError):
                SnapshotDB(tmpdir).connect()

    def test_conn_requires_connect(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db = SnapshotDB(tmpdir)
            with pytest.raises(PersistenceError):
                db.conn
            assert not db.exists

    def test_connection_is_usable_from_other_threads(self, make_snapshot):
        errors = []
        with tempfile.TemporaryDirectory() as tmpdir:
            with SnapshotDB(tmpdir) as db:

                def writer():
                    try:
                        db.append(make_snapshot("t", at=AT))
                    except sqlite3.Error as e:
                        errors.append(e)

                thread = threading.Thread(target=writer)
                thread.start()
                thread.join()
                assert errors == []
                assert db.count() == 1
