"""
confessboard Database Connection Manager

SQLite database with WAL mode, used as the local ledger that commits
board transitions one at a time.
"""

import sqlite3
import logging
import threading
import time
from pathlib import Path
from contextlib import contextmanager
from typing import Optional, Generator

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database manager for confessboard.

    Uses WAL mode so watchers can read while another process commits.
    Writes go through transaction(), which takes the write lock up front
    (BEGIN IMMEDIATE) so read-modify-write sequences are serialized.
    """

    def __init__(self, path: str):
        """
        Initialize database connection.

        Args:
            path: Path to SQLite database file, or ":memory:"
        """
        self.path = Path(path)
        self._memory = str(path) == ":memory:"
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self):
        """Initialize database connection and schema."""
        if not self._memory:
            self.path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(
            ":memory:" if self._memory else str(self.path),
            check_same_thread=False,
            isolation_level=None  # Autocommit mode, explicit transactions
        )

        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")

        # Use Row factory for dict-like access
        self._conn.row_factory = sqlite3.Row

        self._run_migrations()

        self._initialized = True
        logger.info(f"Database initialized: {self.path}")

    def _run_migrations(self):
        """Run database migrations."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY,
                name TEXT UNIQUE NOT NULL,
                applied_at INTEGER NOT NULL
            )
        """)

        applied = {
            row[0] for row in
            self._conn.execute("SELECT name FROM _migrations").fetchall()
        }

        migrations = [
            ("001_initial", self._migration_001_initial),
        ]

        for name, func in migrations:
            if name not in applied:
                logger.info(f"Running migration: {name}")
                func()
                self._conn.execute(
                    "INSERT INTO _migrations (name, applied_at) VALUES (?, ?)",
                    (name, int(time.time() * 1_000_000))
                )

    def _migration_001_initial(self):
        """Initial database schema."""
        # u64 counters and timestamps are stored as decimal TEXT because
        # SQLite INTEGER is signed 64-bit
        self._conn.executescript("""
            -- Boards table: one row per board, holding its latest snapshot
            CREATE TABLE IF NOT EXISTS boards (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                address         TEXT UNIQUE NOT NULL,
                created_at_us   INTEGER NOT NULL,
                sequence        INTEGER NOT NULL DEFAULT 0,
                occupied        INTEGER NOT NULL DEFAULT 0,
                content         TEXT,
                author_tag      BLOB,
                upvotes         TEXT NOT NULL DEFAULT '0',
                downvotes       TEXT NOT NULL DEFAULT '0',
                posted_at       TEXT,
                total_posts     TEXT NOT NULL DEFAULT '0'
            );

            -- Transition log: one row per committed transition
            CREATE TABLE IF NOT EXISTS transitions (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                board_id        INTEGER NOT NULL REFERENCES boards(id) ON DELETE CASCADE,
                sequence        INTEGER NOT NULL,
                kind            TEXT NOT NULL CHECK (kind IN ('post', 'vote')),
                direction       TEXT CHECK (direction IN ('up', 'down')),
                committed_at_us INTEGER NOT NULL,
                UNIQUE(board_id, sequence)
            );
            CREATE INDEX IF NOT EXISTS idx_transitions_board ON transitions(board_id);
        """)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for write transactions."""
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
                self._conn.execute("COMMIT")
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL query."""
        with self._lock:
            return self._conn.execute(sql, params)

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Execute query and fetch one result."""
        with self._lock:
            return self._conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Execute query and fetch all results."""
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def close(self):
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._initialized = False
            logger.info("Database connection closed")
