"""
Database Connection Manager
===========================
SQLite file backing the persisted key-value store.
"""
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Iterator, List

from lyrics_translator.config import config
from lyrics_translator.utils.logging import get_logger


SCHEMA = """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


class Database:
    """
    SQLite store shared by the pipeline worker and API request threads.

    Connections are opened lazily, one per thread, and remembered so that
    :meth:`close` can release all of them.
    """

    _instance: Optional['Database'] = None
    _lock = threading.Lock()

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or config.paths.db_path)
        self.logger = get_logger().db_logger
        self._local = threading.local()
        self._open: List[sqlite3.Connection] = []
        self._open_lock = threading.Lock()
        self._ready = False

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_instance(cls, db_path: Path = None) -> 'Database':
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls(db_path)
            return cls._instance

    @property
    def connection(self) -> sqlite3.Connection:
        """Connection owned by the calling thread."""
        conn = getattr(self._local, 'conn', None)
        if conn is None:
            conn = self._open_connection()
            self._local.conn = conn
        return conn

    def _open_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=config.logging.db_timeout,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        for pragma in ("journal_mode=WAL", "synchronous=NORMAL"):
            conn.execute(f"PRAGMA {pragma}")
        with self._open_lock:
            self._open.append(conn)
        return conn

    def initialize(self) -> None:
        """Create the settings table. Safe to call repeatedly."""
        if self._ready:
            return
        with self._lock:
            if self._ready:
                return
            with self.transaction() as conn:
                conn.execute(SCHEMA)
            self._ready = True
            self.logger.info(f"Database ready: {self.db_path}")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back and re-raise on any error."""
        conn = self.connection
        try:
            yield conn
        except Exception as e:
            conn.rollback()
            self.logger.error(f"Rolled back: {e}")
            raise
        else:
            conn.commit()

    def execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self.connection.execute(query, params or ())
        except sqlite3.Error as e:
            self.logger.error(f"Query failed ({e}): {query.strip()[:80]}")
            raise

    def fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        return self.execute(query, params).fetchone()

    def fetchall(self, query: str, params: tuple = ()) -> list:
        return self.execute(query, params).fetchall()

    def is_healthy(self) -> bool:
        try:
            return self.fetchone("SELECT 1") is not None
        except sqlite3.Error:
            return False

    def close(self) -> None:
        with self._open_lock:
            while self._open:
                self._open.pop().close()
        self._local = threading.local()


_database: Optional[Database] = None


def get_database() -> Database:
    """Process-wide database at the configured path."""
    global _database
    if _database is None:
        _database = Database.get_instance()
        _database.initialize()
    return _database


def reset_database() -> None:
    """Drop the process-wide database so the next access reopens it."""
    global _database
    if _database is not None:
        _database.close()
    _database = None
    Database._instance = None
