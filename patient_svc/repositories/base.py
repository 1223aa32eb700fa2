"""
SQLite document store setup.

Patients are stored one JSON document per row, keyed by an opaque string id,
with an integer version used for conditional writes. The schema is versioned
through ``PRAGMA user_version``; opening a file runs whichever steps in
MIGRATIONS it has not seen yet.

IMPORTANT: Database instantiation should be done through the DI layer.
Use core.dependencies.get_database() instead of instantiating directly.
"""
import sqlite3
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Dict, Any
from pathlib import Path

from core.config import DATABASE_PATH, DATABASE_BUSY_TIMEOUT

logger = logging.getLogger(__name__)


# Step N brings a file from user_version N-1 to N. Append only.
MIGRATIONS = (
    """
    CREATE TABLE IF NOT EXISTS patients (
        id TEXT PRIMARY KEY,
        document TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)

SCHEMA_VERSION = len(MIGRATIONS)


class Database:
    """
    Owns the SQLite file: schema, pragmas and connections.

    Connections are short-lived, one per repository call. ``connect()`` wraps
    one in a transaction that commits on success and rolls back on any error.

    Usage:
        db = Database(db_path="/tmp/test.db")
        with db.connect() as conn:
            conn.execute("SELECT count(*) FROM patients")
    """

    def __init__(self, db_path: Optional[str] = None, busy_timeout: Optional[int] = None):
        """
        Args:
            db_path: Path to SQLite database file. Defaults to config DATABASE_PATH.
            busy_timeout: Milliseconds a writer waits on a lock. Defaults to config value.
        """
        self.db_path = db_path or DATABASE_PATH
        self.busy_timeout = busy_timeout if busy_timeout is not None else DATABASE_BUSY_TIMEOUT

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._migrate()

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout)}")
        return conn

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction."""
        conn = self._open()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _migrate(self) -> None:
        with self.connect() as conn:
            # WAL is a property of the file; later connections inherit it
            mode = conn.execute("PRAGMA journal_mode = WAL").fetchone()[0]
            if mode.lower() != "wal":
                logger.warning("WAL mode unavailable", extra={"journal_mode": mode, "db_path": self.db_path})

            current = conn.execute("PRAGMA user_version").fetchone()[0]
            for step in range(current, SCHEMA_VERSION):
                conn.execute(MIGRATIONS[step])
                logger.info("Applied schema step", extra={"step": step + 1, "db_path": self.db_path})
            if current < SCHEMA_VERSION:
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

        logger.info(
            "Document store ready",
            extra={"db_path": self.db_path, "schema_version": SCHEMA_VERSION, "busy_timeout_ms": self.busy_timeout}
        )

    def describe(self) -> Dict[str, Any]:
        """
        Query the store for the readiness check.

        Raises:
            sqlite3.Error: If the file cannot be opened or queried.
        """
        with self.connect() as conn:
            return {
                "journal_mode": conn.execute("PRAGMA journal_mode").fetchone()[0],
                "schema_version": conn.execute("PRAGMA user_version").fetchone()[0],
                "patients": conn.execute("SELECT count(*) FROM patients").fetchone()[0],
            }
