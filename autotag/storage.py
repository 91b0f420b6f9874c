"""
Autotag — Key-value storage
Async get/set stores holding the persisted view history.

get(key) returns {key: value} when present and {} otherwise.
"""

from __future__ import annotations

import copy
import json
import sqlite3
from typing import Any, Protocol, runtime_checkable

import anyio

from .database import get_connection, init_db
from .errors import StorageError


@runtime_checkable
class KeyValueStore(Protocol):
    async def get(self, key: str) -> dict[str, Any]: ...

    async def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """In-process store. Values are copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> dict[str, Any]:
        if key not in self._data:
            return {}
        return {key: copy.deepcopy(self._data[key])}

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class SQLiteStore:
    """JSON values in the kv_store table, queried from a worker thread."""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path
        init_db(db_path)

    async def get(self, key: str) -> dict[str, Any]:
        return await anyio.to_thread.run_sync(self._get, key)

    async def set(self, key: str, value: Any) -> None:
        await anyio.to_thread.run_sync(self._set, key, value)

    def _get(self, key: str) -> dict[str, Any]:
        try:
            with get_connection(self.db_path) as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Read failed for {key!r}: {exc}") from exc
        if row is None:
            return {}
        try:
            return {key: json.loads(row["value"])}
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt value for {key!r}") from exc

    def _set(self, key: str, value: Any) -> None:
        try:
            blob = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Value for {key!r} is not JSON serializable") from exc
        try:
            with get_connection(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, datetime('now'))
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, blob),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Write failed for {key!r}: {exc}") from exc
