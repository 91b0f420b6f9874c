"""
Autotag — Exceptions
"""

from __future__ import annotations

from typing import Any


class AutotagError(Exception):
    """Base error class for autotag."""


class ConfigError(AutotagError):
    """Invalid plugin options or allow/deny patterns."""


class StorageError(AutotagError):
    """Key-value store read or write failed."""


class TagRegistryError(AutotagError):
    """Tag registry call failed."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TagRegistryAuthError(TagRegistryError):
    """Authentication failed (401/403)."""


class TagRegistryNotFoundError(TagRegistryError):
    """Resource not found (404)."""


class TagRegistryRateLimitError(TagRegistryError):
    """Rate limit exceeded (429)."""


class TagRegistryServerError(TagRegistryError):
    """Server-side error (5xx)."""
