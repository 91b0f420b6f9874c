"""
Autotag - Database layer
SQLite connection pool and schema for the local store and tag registry.
"""

import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from queue import Empty, Full, Queue

from . import config

_POOL_SIZE = 4


def _get_db_path(db_path: str | None = None) -> Path:
    """Resolve the DB path at call time (AUTOTAG_DB_PATH may change in tests)."""
    if db_path:
        return Path(db_path)
    return Path(os.getenv("AUTOTAG_DB_PATH", config.DEFAULT_DB_PATH))


# ── Connection Pool ─────────────────────────────────────────────────────────


class _ConnectionPool:
    """Simple thread-safe SQLite connection pool."""

    def __init__(self) -> None:
        self._pools: dict[str, Queue] = {}
        self._lock = threading.Lock()

    def _get_pool(self, db_path: str) -> Queue:
        with self._lock:
            if db_path not in self._pools:
                self._pools[db_path] = Queue(maxsize=_POOL_SIZE)
            return self._pools[db_path]

    def acquire(self, db_path: str) -> sqlite3.Connection:
        pool = self._get_pool(db_path)
        try:
            conn = pool.get_nowait()
        except Empty:
            conn = None
        if conn is not None:
            try:
                conn.execute("SELECT 1")
                return conn
            except sqlite3.Error:
                # Stale connection, close it and open a fresh one
                conn.close()
        conn = sqlite3.connect(db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def release(self, db_path: str, conn: sqlite3.Connection) -> None:
        pool = self._get_pool(db_path)
        try:
            pool.put_nowait(conn)
        except Full:
            conn.close()

    def clear(self) -> None:
        """Close every pooled connection (test cleanup)."""
        with self._lock:
            for pool in self._pools.values():
                while not pool.empty():
                    try:
                        pool.get_nowait().close()
                    except Empty:
                        break
            self._pools.clear()


_pool = _ConnectionPool()


def init_db(db_path: str | None = None) -> None:
    """Create the database file and tables if they don't exist."""
    path = _get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    path.chmod(0o600)  # owner only, holds browsing history

    with get_connection(str(path)) as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key         TEXT    PRIMARY KEY,
                value       TEXT    NOT NULL,
                updated_at  TEXT    NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS visitor_tags (
                tag         TEXT    PRIMARY KEY,
                created_at  TEXT    NOT NULL DEFAULT (datetime('now'))
            );
        """)


@contextmanager
def get_connection(db_path: str | None = None):
    """Yield a pooled SQLite connection, committing on success."""
    path = str(_get_db_path(db_path))
    conn = _pool.acquire(path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        _pool.release(path, conn)
