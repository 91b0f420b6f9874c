"""
Autotag — Orchestrator
Runs one cycle per page view: filter -> extract -> record -> rank -> reconcile.

Cycles are serialized with a lock, so two page views never interleave their
read-modify-write of the view history. A failing collaborator abandons the
cycle (logged, `cycle.failed` emitted) and never propagates to the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import anyio
from pydantic import ValidationError

from . import decay
from .errors import ConfigError
from .events import CYCLE_FAILED, FAVORITES_RANKED, TAGS_RECONCILED, VIEW_RECORDED, VIEW_REJECTED, emit
from .extractor import TopicExtractor, UrlFilter
from .models import AutotagOptions, CycleResult, DomSnapshot, PageLocator, TagDiff
from .reconciler import apply_diff, reconcile
from .registry import TagRegistry
from .storage import KeyValueStore
from .views import ViewStore

logger = logging.getLogger("autotag.orchestrator")


def _now_ms() -> int:
    return int(time.time() * 1000)


def load_options(options: AutotagOptions | dict[str, Any] | None) -> AutotagOptions:
    """Validate raw plugin options. Raises ConfigError."""
    if isinstance(options, AutotagOptions):
        return options
    try:
        return AutotagOptions.model_validate(options or {})
    except ValidationError as exc:
        raise ConfigError(f"Invalid autotag options: {exc}") from exc


class Autotag:
    """
    Infers the visitor's favorite topics and mirrors them as prefixed tags.

    Args:
        store: Async key-value store holding the view history
        registry: Async tag registry for the visitor
        options: AutotagOptions or a raw dict (camelCase or snake_case keys)
        clock: Returns the current time in ms since epoch
    """

    def __init__(
        self,
        store: KeyValueStore,
        registry: TagRegistry,
        options: AutotagOptions | dict[str, Any] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.options = load_options(options)
        self.extractor = TopicExtractor(self.options)
        self.url_filter = UrlFilter(
            self.options.whitelist,
            self.options.blacklist,
            regex=self.options.pattern_mode == "regex",
        )
        self.views = ViewStore.from_options(store, self.options)
        self.registry = registry
        self._clock = clock or _now_ms
        self._lock = anyio.Lock()
        self._last_href: str | None = None

    async def on_page_view(
        self,
        locator: PageLocator | str,
        snapshot: DomSnapshot | None = None,
        force: bool = False,
    ) -> CycleResult:
        """
        Handle a page view. A repeat of the last handled href is ignored
        unless `force` is set (initial load-completion).
        """
        if isinstance(locator, str):
            locator = PageLocator.from_url(locator)
        href = locator.href

        if not force and href == self._last_href:
            logger.debug("Ignoring repeated view of %s", href)
            return CycleResult(status="duplicate", href=href)
        self._last_href = href

        async with self._lock:
            try:
                return await self._run_cycle(locator, snapshot)
            except Exception as exc:
                if self._last_href == href:
                    self._last_href = None  # let the same page retry
                logger.exception("Autotag cycle failed for %s", href)
                emit(CYCLE_FAILED, {"href": href, "error": str(exc)})
                return CycleResult(status="failed", href=href, error=str(exc))

    async def _run_cycle(self, locator: PageLocator, snapshot: DomSnapshot | None) -> CycleResult:
        href = locator.href
        if not self.url_filter.accepts(href):
            logger.debug("View of %s rejected by allow/deny rules", href)
            emit(VIEW_REJECTED, {"href": href})
            return CycleResult(status="rejected", href=href)

        topics = self.extractor.extract(locator, snapshot)
        now = self._clock()
        if topics:
            await self.views.record_view(topics, now)
            emit(VIEW_RECORDED, {"href": href, "topics": topics, "timestamp": now})

        favorites = await self.get_favorite_topics(now)
        diff = await self.handle_tags(favorites)
        return CycleResult(status="applied", href=href, topics=topics, favorites=favorites, diff=diff)

    async def get_favorite_topics(self, now: float | None = None) -> list[str]:
        """Current favorite topics, best first."""
        if now is None:
            now = self._clock()
        views = await self.views.load()
        favorites = decay.rank(
            views,
            now,
            min_views=self.options.effective_min_views,
            age_mid_weight=self.options.age_mid_weight,
            num_topics=self.options.num_topics,
        )
        emit(FAVORITES_RANKED, {"favorites": favorites})
        return favorites

    async def handle_tags(self, favorites: list[str]) -> TagDiff:
        """Bring the registry's prefixed tags in line with `favorites`."""
        current = await self.registry.get_tags()
        diff = reconcile(current, favorites, self.options.tag_prefix)
        if diff.is_empty:
            return diff

        await apply_diff(self.registry, diff)
        logger.info("Tags updated: +%s -%s", diff.to_add, diff.to_remove)
        emit(TAGS_RECONCILED, {"added": diff.to_add, "removed": diff.to_remove})
        return diff
