"""
Autotag — View Store
Bounded per-topic history of view timestamps (ms since epoch), persisted
as a single mapping under one key of the external key-value store.

Retention, applied to a topic each time it is viewed:
  1. timestamps sorted ascending
  2. drop views strictly older than now - max_view_age (if configured)
  3. keep only the max_views most recent (if configured)

Without max_views a history grows without bound.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import anyio

from . import config
from .errors import StorageError
from .models import AutotagOptions
from .storage import KeyValueStore

logger = logging.getLogger("autotag.views")

ViewsByTopic = dict[str, list[float]]


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def sanitize_views(raw: Any) -> ViewsByTopic:
    """
    Coerce a stored value into a clean ViewsByTopic.
    Non-mapping values become {}, non-numeric timestamps are dropped,
    topics left with no timestamps are treated as absent.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Discarding malformed view history of type %s", type(raw).__name__)
        return {}
    views: ViewsByTopic = {}
    for topic, history in raw.items():
        if not isinstance(topic, str) or not isinstance(history, list):
            continue
        timestamps = [t for t in history if _is_timestamp(t)]
        if timestamps:
            views[topic] = timestamps
    return views


def apply_retention(
    timestamps: list[float],
    now: float,
    max_views: int | None = None,
    max_view_age: float | None = None,
) -> list[float]:
    """Return the retained timestamps, sorted ascending."""
    kept = sorted(timestamps)
    if max_view_age:
        cutoff = now - max_view_age
        kept = [t for t in kept if t >= cutoff]
    if max_views is not None and len(kept) > max_views:
        kept = kept[len(kept) - max_views :]
    return kept


class ViewStore:
    """Sole writer of the persisted view history."""

    def __init__(
        self,
        store: KeyValueStore,
        max_views: int | None = None,
        max_view_age: float | None = None,
        key: str = config.STORAGE_KEY,
    ):
        self.store = store
        self.max_views = max_views
        self.max_view_age = max_view_age
        self.key = key
        # Serializes read-modify-write cycles on the shared mapping
        self._lock = anyio.Lock()

    @classmethod
    def from_options(cls, store: KeyValueStore, options: AutotagOptions) -> ViewStore:
        return cls(store, max_views=options.max_views, max_view_age=options.max_view_age)

    async def load(self) -> ViewsByTopic:
        """Read and sanitize the persisted history."""
        try:
            data = await self.store.get(self.key)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"Read failed for {self.key!r}: {exc}") from exc
        return sanitize_views((data or {}).get(self.key))

    async def record_view(self, topics: list[str], now: float) -> ViewsByTopic:
        """
        Append `now` to every topic's history, apply retention and persist
        the whole mapping in one write. Returns the mapping as written.
        """
        if not topics:
            return await self.load()

        async with self._lock:
            views = await self.load()
            for topic in dict.fromkeys(topics):
                history = views.get(topic, [])
                history.append(now)
                views[topic] = apply_retention(history, now, self.max_views, self.max_view_age)

            try:
                await self.store.set(self.key, views)
            except StorageError:
                raise
            except Exception as exc:
                raise StorageError(f"Write failed for {self.key!r}: {exc}") from exc

        logger.debug("Recorded view at %s for %s", now, topics)
        return views
