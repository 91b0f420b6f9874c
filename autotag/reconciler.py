"""
Autotag — Tag Reconciler
Converges the visitor's prefixed tags onto the current favorite topics.

After a successful apply, the registry's tags starting with `tag_prefix`
are exactly {tag_prefix + topic for each favorite}. Tags without the
prefix are never read or written.
"""

from __future__ import annotations

import logging

from .errors import TagRegistryError
from .models import TagDiff
from .registry import TagRegistry

logger = logging.getLogger("autotag.reconciler")


def reconcile(current_tags: list[str], favorite_topics: list[str], tag_prefix: str) -> TagDiff:
    """Minimal add/remove sets, each free of duplicates and in input order."""
    wanted = list(dict.fromkeys(tag_prefix + topic for topic in favorite_topics))
    current = set(current_tags)

    to_remove = [
        tag
        for tag in dict.fromkeys(current_tags)
        if tag.startswith(tag_prefix) and tag[len(tag_prefix) :] not in favorite_topics
    ]
    to_add = [tag for tag in wanted if tag not in current]
    return TagDiff(to_add=to_add, to_remove=to_remove)


async def apply_diff(registry: TagRegistry, diff: TagDiff) -> None:
    """
    Execute a diff against a registry.
    A batched call is used when the registry offers one. Otherwise tags are
    changed one by one and, on failure, the changes already made are undone
    before the error is raised.
    """
    if diff.is_empty:
        return

    batch = getattr(registry, "add_remove_tags", None)
    if batch is not None:
        try:
            await batch(diff.to_add, diff.to_remove)
        except TagRegistryError:
            raise
        except Exception as exc:
            raise TagRegistryError(f"Tag update failed: {exc}") from exc
        return

    applied: list[tuple[str, str]] = []
    try:
        for tag in diff.to_remove:
            await registry.remove_tag(tag)
            applied.append(("remove", tag))
        for tag in diff.to_add:
            await registry.add_tag(tag)
            applied.append(("add", tag))
    except Exception as exc:
        await _undo(registry, applied)
        if isinstance(exc, TagRegistryError):
            raise
        raise TagRegistryError(f"Tag update failed: {exc}") from exc


async def _undo(registry: TagRegistry, applied: list[tuple[str, str]]) -> None:
    for action, tag in reversed(applied):
        try:
            if action == "remove":
                await registry.add_tag(tag)
            else:
                await registry.remove_tag(tag)
        except Exception:
            logger.exception("Could not revert %s of tag %s", action, tag)
