"""
SQLite metadata store for accepted frames.

Schema changes are expressed as an ordered list of named migrations. Each one
runs inside a transaction together with its row in the ``migrations`` ledger,
so re-opening a database never applies a migration twice.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from timelapse.errors import StorageError

log = logging.getLogger(__name__)

SCREENSHOTS_SCHEMA = """
    CREATE TABLE IF NOT EXISTS screenshots (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        frame_number INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        local_time TEXT NOT NULL
    )
"""

MIGRATIONS_SCHEMA = """
    CREATE TABLE IF NOT EXISTS migrations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        migration_name TEXT UNIQUE NOT NULL,
        applied_at TEXT NOT NULL
    )
"""


@dataclass(frozen=True)
class Migration:
    name: str
    apply: Callable[[sqlite3.Connection], None]


def _columns(conn: sqlite3.Connection, table: str) -> List[str]:
    return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]


def _split_timestamps(conn: sqlite3.Connection) -> None:
    """Split the legacy creation_date column into created_at and local_time."""
    columns = _columns(conn, "screenshots")
    if "creation_date" not in columns or "created_at" in columns:
        return

    log.info("Migrating database: splitting creation_date into created_at and local_time")
    conn.execute("ALTER TABLE screenshots RENAME TO screenshots_old")
    conn.execute(SCREENSHOTS_SCHEMA)
    # No local time was ever recorded, so both columns take the legacy value
    conn.execute(
        "INSERT INTO screenshots (id, frame_number, created_at, local_time) "
        "SELECT id, frame_number, creation_date, creation_date FROM screenshots_old"
    )
    conn.execute("DROP TABLE screenshots_old")


MIGRATIONS: List[Migration] = [
    Migration("split_timestamps", _split_timestamps),
]


class MetadataStore:
    """Frame metadata persisted in ``screenshots.db``; safe to share across threads."""

    def __init__(self, db_path: Path, migrations: Optional[List[Migration]] = None):
        self.db_path = Path(db_path)
        self.migrations = MIGRATIONS if migrations is None else migrations
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(self.db_path), isolation_level=None, check_same_thread=False
            )
            with self._lock:
                self._initialize()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Unable to open {self.db_path}: {e}") from e

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        self._conn.execute("BEGIN")
        try:
            yield self._conn
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")

    def _initialize(self) -> None:
        self._conn.execute(MIGRATIONS_SCHEMA)
        # Legacy databases keep their old table here; a migration reshapes it
        self._conn.execute(SCREENSHOTS_SCHEMA)
        for migration in self.migrations:
            if self._migration_applied(migration.name):
                continue
            with self._transaction() as conn:
                migration.apply(conn)
                conn.execute(
                    "INSERT INTO migrations (migration_name, applied_at) VALUES (?, ?)",
                    (migration.name, datetime.now(timezone.utc).isoformat()),
                )
            log.info(f"Applied migration {migration.name}")

    def _migration_applied(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM migrations WHERE migration_name = ?", (name,)
        ).fetchone()
        return row[0] > 0

    def insert(self, frame_number: int, created_at: datetime, local_time: datetime) -> None:
        """Record one accepted frame."""
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO screenshots (frame_number, created_at, local_time) VALUES (?, ?, ?)",
                    (frame_number, created_at.isoformat(), local_time.isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def get_by_frame(self, frame_number: int) -> Optional[Tuple[str, str]]:
        """(created_at, local_time) of the latest row with this frame number."""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT created_at, local_time FROM screenshots "
                    "WHERE frame_number = ? ORDER BY id DESC LIMIT 1",
                    (frame_number,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        return (row[0], row[1]) if row else None

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM screenshots").fetchone()[0]

    def applied_migrations(self) -> List[Tuple[str, str]]:
        with self._lock:
            return [
                (row[0], row[1])
                for row in self._conn.execute(
                    "SELECT migration_name, applied_at FROM migrations ORDER BY id"
                )
            ]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
