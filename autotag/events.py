"""
Autotag — Event System
In-process notifications for each stage of a page-view cycle.

Payloads by event:
  view.recorded     {"href", "topics": [str], "timestamp": ms}
  view.rejected     {"href"}                  allow/deny gate refused the URL
  favorites.ranked  {"favorites": [str]}      best first
  tags.reconciled   {"added": [str], "removed": [str]}   only when something changed
  cycle.failed      {"href", "error": str}    cycle abandoned, tags left as they were

Handlers run synchronously inside the cycle; an exception in one is logged
and never reaches the orchestrator.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger("autotag.events")

EventHandler = Callable[[str, dict[str, Any]], None]

_handlers: dict[str, list[EventHandler]] = defaultdict(list)

# Event types (payloads documented above)
VIEW_RECORDED = "view.recorded"
VIEW_REJECTED = "view.rejected"
FAVORITES_RANKED = "favorites.ranked"
TAGS_RECONCILED = "tags.reconciled"
CYCLE_FAILED = "cycle.failed"


def on(event: str, handler: EventHandler) -> None:
    """Register a handler for an event type."""
    _handlers[event].append(handler)


def emit(event: str, data: dict[str, Any] | None = None) -> None:
    """Emit an event to its handlers, in registration order."""
    payload = data or {}
    for handler in _handlers.get(event, []):
        try:
            handler(event, payload)
        except Exception:
            logger.exception("Event handler error for %s", event)


def clear() -> None:
    """Remove all handlers (for testing)."""
    _handlers.clear()
