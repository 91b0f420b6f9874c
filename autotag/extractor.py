"""
Autotag — Topic Extractor
Derives candidate topics from the current page.

Two strategies, selected by configuration:
  1. URL position — one path segment (or the hostname) becomes the topic
  2. Topic list   — configured topics matched on word boundaries against
                    the URL, title, first heading and social meta tags

Allow/deny filtering is a separate gate on the raw href (UrlFilter).
"""

from __future__ import annotations

import logging
import re
import unicodedata

from . import config
from .errors import ConfigError
from .models import AutotagOptions, DomSnapshot, PageLocator

logger = logging.getLogger("autotag.extractor")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")
_NUMERIC = re.compile(r"^[0-9]+$")
_NUMERIC_HTML = re.compile(r"^[0-9]+\.html$")


def normalize(value: str) -> str:
    """
    Normalize a raw string into a topic key.
    "Chaussures Été!" -> "chaussures-ete"
    """
    decomposed = unicodedata.normalize("NFD", value)
    result = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    result = result.lower()
    result = _NON_ALNUM.sub(" ", result)
    result = result.strip()
    return _WHITESPACE.sub("-", result)


def topic_pattern(topic: str) -> re.Pattern[str] | None:
    """Word-boundary pattern for a topic, None if it normalizes to nothing."""
    normalized = normalize(topic)
    if not normalized:
        return None
    # Bounded by non-alphanumerics or string ends, never inside a longer word
    return re.compile(r"(^|[^a-z0-9])" + re.escape(normalized) + r"([^a-z0-9]|$)", re.IGNORECASE)


def path_tokens(pathname: str) -> list[str]:
    """Split a path on '/', dropping the root segment and trailing empty segments."""
    tokens = pathname.split("/")
    if tokens and not tokens[0]:
        tokens.pop(0)
    while tokens and not tokens[-1]:
        tokens.pop()
    return tokens


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class UrlFilter:
    """Allow/deny gate applied to the raw href. Deny always wins."""

    def __init__(self, whitelist: list[str], blacklist: list[str], regex: bool = False):
        self._allow = [self._compile(p, regex) for p in whitelist]
        self._deny = [self._compile(p, regex) for p in blacklist]

    @staticmethod
    def _compile(pattern: str, regex: bool) -> re.Pattern[str]:
        try:
            return re.compile(pattern if regex else re.escape(pattern))
        except re.error as exc:
            raise ConfigError(f"Invalid URL pattern {pattern!r}: {exc}") from exc

    def accepts(self, href: str) -> bool:
        if any(p.search(href) for p in self._deny):
            return False
        if self._allow:
            return any(p.search(href) for p in self._allow)
        return True


class TopicExtractor:
    """Produces ordered, de-duplicated, normalized candidate topics for a page."""

    def __init__(self, options: AutotagOptions):
        self.url_position = options.url_position
        self._patterns: dict[str, re.Pattern[str]] = {}
        for raw in options.topic_list:
            pattern = topic_pattern(raw)
            if pattern is None:
                logger.warning("Ignoring topic %r: empty after normalization", raw)
                continue
            self._patterns.setdefault(normalize(raw), pattern)

    @property
    def topics(self) -> list[str]:
        """Configured topics, normalized, in configuration order."""
        return list(self._patterns)

    @property
    def uses_topic_list(self) -> bool:
        return bool(self._patterns)

    def extract(self, locator: PageLocator, snapshot: DomSnapshot | None = None) -> list[str]:
        if self.uses_topic_list:
            candidates = self._from_content(locator, snapshot or DomSnapshot())
        else:
            candidates = self._from_url(locator)
        return _dedupe([c for c in candidates if c])

    def content_sources(self, locator: PageLocator, snapshot: DomSnapshot) -> list[str]:
        sources = [normalize(locator.href)]
        title = normalize(snapshot.title or "")
        if title:
            sources.append(title)
        # Heading text is matched as-is, only the pattern is case-insensitive
        if snapshot.first_heading_text:
            sources.append(snapshot.first_heading_text)
        for name in config.META_NAMES:
            content = normalize(snapshot.meta_contents.get(name) or "")
            if content:
                sources.append(content)
        return sources

    def _from_content(self, locator: PageLocator, snapshot: DomSnapshot) -> list[str]:
        sources = self.content_sources(locator, snapshot)
        return [
            topic
            for topic, pattern in self._patterns.items()
            if any(pattern.search(source) for source in sources)
        ]

    def _from_url(self, locator: PageLocator) -> list[str]:
        if self.url_position == 0:
            return [normalize(locator.hostname)]

        tokens = path_tokens(locator.pathname)
        # The leaf segment is never a topic
        if self.url_position >= len(tokens) - 1:
            return []
        token = tokens[self.url_position]
        if _NUMERIC.match(token) or _NUMERIC_HTML.match(token):
            return []
        if len(token) > config.MAX_TOKEN_LENGTH:
            return []
        return [normalize(token)]
