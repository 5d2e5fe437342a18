"""SQLite-backed snapshot store kept in .code-timeline/ at the project root."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from ..evolution.models import CodeSnapshot
from ..exceptions import PersistenceError
from .records import SnapshotRecord

logger = logging.getLogger(__name__)

# Current table layout version (bump when tables change).
_SCHEMA_VERSION = 1

DEFAULT_DATA_DIR = ".code-timeline"


class SnapshotDB:
    """Manages ``<root>/.code-timeline/history.db``.

    Implements the ``load()`` / ``save()`` persistence contract the engine
    consumes. Each row holds one :class:`SnapshotRecord` as JSON.

    Usage::

        with SnapshotDB("/path/to/project") as db:
            snapshots = db.load()
            db.save(snapshots + [new_snapshot])
    """

    def __init__(self, project_root: str | Path, data_dir: str = DEFAULT_DATA_DIR) -> None:
        self.db_dir: Path = Path(project_root) / data_dir
        self.db_path: Path = self.db_dir / "history.db"
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise PersistenceError(
                "SnapshotDB is not connected. Use as context manager or call connect().",
                details={"path": str(self.db_path)},
            )
        return self._conn

    @property
    def exists(self) -> bool:
        return self.db_path.exists()

    # ── lifecycle ─────────────────────────────────────────────────

    def _ensure_dir(self) -> None:
        """Create the data directory with a .gitignore so it stays untracked."""
        self.db_dir.mkdir(parents=True, exist_ok=True)
        gitignore = self.db_dir / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text("*\n")

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        self._ensure_dir()
        try:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Cannot open snapshot database: {e}", details={"path": str(self.db_path)}
            )
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._migrate()
        logger.debug("Snapshot DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SnapshotDB:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create / upgrade all tables."""
        c = self.conn

        c.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER NOT NULL
            )
            """
        )

        row = c.execute("SELECT version FROM schema_version").fetchone()
        if row is None:
            c.execute("INSERT INTO schema_version (version) VALUES (?)", (_SCHEMA_VERSION,))
        elif row["version"] > _SCHEMA_VERSION:
            raise PersistenceError(
                "Snapshot database was written by a newer release",
                details={"found": str(row["version"]), "supported": str(_SCHEMA_VERSION)},
            )

        c.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                record_version  INTEGER NOT NULL,
                timestamp       TEXT    NOT NULL,
                language        TEXT    NOT NULL,
                conversation_id TEXT    NOT NULL DEFAULT '',
                payload         TEXT    NOT NULL
            )
            """
        )
        c.execute("CREATE INDEX IF NOT EXISTS idx_snapshots_language ON snapshots(language)")
        c.commit()

    # ── snapshots ─────────────────────────────────────────────────

    def load(self) -> list[CodeSnapshot]:
        """All stored snapshots in insertion order, upgraded to the current record schema."""
        rows = self.conn.execute("SELECT payload FROM snapshots ORDER BY id").fetchall()
        snapshots = [SnapshotRecord.from_json(row["payload"]).to_snapshot() for row in rows]
        logger.debug("Loaded %d snapshots from %s", len(snapshots), self.db_path)
        return snapshots

    def save(self, snapshots: Iterable[CodeSnapshot]) -> int:
        """Replace the stored snapshots with ``snapshots``. Returns the row count."""
        rows = [self._row(s) for s in snapshots]
        with self.conn:
            self.conn.execute("DELETE FROM snapshots")
            self.conn.executemany(
                """
                INSERT INTO snapshots (record_version, timestamp, language, conversation_id, payload)
                VALUES (?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.debug("Saved %d snapshots to %s", len(rows), self.db_path)
        return len(rows)

    def append(self, snapshot: CodeSnapshot) -> None:
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO snapshots (record_version, timestamp, language, conversation_id, payload)
                VALUES (?, ?, ?, ?, ?)
                """,
                self._row(snapshot),
            )

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM snapshots").fetchone()[0]

    @staticmethod
    def _row(snapshot: CodeSnapshot) -> tuple:
        record = SnapshotRecord.from_snapshot(snapshot)
        return (
            record.schema_version,
            record.timestamp,
            record.language,
            record.conversation_id,
            record.to_json(),
        )
