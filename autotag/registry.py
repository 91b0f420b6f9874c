"""
Autotag — Tag registries
The visitor's label set: list, add and remove tags.

A registry provides either single-tag calls (TagRegistry) or one batched
call (BatchTagRegistry); the bundled implementations provide both.
"""

from __future__ import annotations

import sqlite3
from typing import Protocol, runtime_checkable

import anyio

from .database import get_connection, init_db
from .errors import TagRegistryError


@runtime_checkable
class TagRegistry(Protocol):
    async def get_tags(self) -> list[str]: ...

    async def add_tag(self, tag: str) -> None: ...

    async def remove_tag(self, tag: str) -> None: ...


@runtime_checkable
class BatchTagRegistry(Protocol):
    async def get_tags(self) -> list[str]: ...

    async def add_remove_tags(self, to_add: list[str], to_remove: list[str]) -> None: ...


class MemoryTagRegistry:
    """In-process registry preserving insertion order."""

    def __init__(self, tags: list[str] | None = None):
        self._tags: dict[str, None] = dict.fromkeys(tags or [])

    async def get_tags(self) -> list[str]:
        return list(self._tags)

    async def add_tag(self, tag: str) -> None:
        self._tags.setdefault(tag, None)

    async def remove_tag(self, tag: str) -> None:
        self._tags.pop(tag, None)

    async def add_remove_tags(self, to_add: list[str], to_remove: list[str]) -> None:
        for tag in to_remove:
            self._tags.pop(tag, None)
        for tag in to_add:
            self._tags.setdefault(tag, None)


class SQLiteTagRegistry:
    """Registry backed by the visitor_tags table. Batched calls are one transaction."""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path
        init_db(db_path)

    async def get_tags(self) -> list[str]:
        return await anyio.to_thread.run_sync(self._get_tags)

    async def add_tag(self, tag: str) -> None:
        await self.add_remove_tags([tag], [])

    async def remove_tag(self, tag: str) -> None:
        await self.add_remove_tags([], [tag])

    async def add_remove_tags(self, to_add: list[str], to_remove: list[str]) -> None:
        await anyio.to_thread.run_sync(self._add_remove, list(to_add), list(to_remove))

    def _get_tags(self) -> list[str]:
        try:
            with get_connection(self.db_path) as conn:
                rows = conn.execute("SELECT tag FROM visitor_tags ORDER BY created_at, tag").fetchall()
        except sqlite3.Error as exc:
            raise TagRegistryError(f"Listing tags failed: {exc}") from exc
        return [r["tag"] for r in rows]

    def _add_remove(self, to_add: list[str], to_remove: list[str]) -> None:
        try:
            with get_connection(self.db_path) as conn:
                conn.executemany("DELETE FROM visitor_tags WHERE tag = ?", [(t,) for t in to_remove])
                conn.executemany("INSERT OR IGNORE INTO visitor_tags (tag) VALUES (?)", [(t,) for t in to_add])
        except sqlite3.Error as exc:
            raise TagRegistryError(f"Updating tags failed: {exc}") from exc
