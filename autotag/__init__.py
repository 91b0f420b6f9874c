# Autotag package

from .client import HttpTagRegistry
from .config import VERSION as __version__
from .errors import (
    AutotagError,
    ConfigError,
    StorageError,
    TagRegistryAuthError,
    TagRegistryError,
    TagRegistryNotFoundError,
    TagRegistryRateLimitError,
    TagRegistryServerError,
)
from .extractor import TopicExtractor, UrlFilter, normalize
from .models import AutotagOptions, CycleResult, DomSnapshot, PageLocator, TagDiff
from .orchestrator import Autotag
from .reconciler import apply_diff, reconcile
from .registry import MemoryTagRegistry, SQLiteTagRegistry
from .storage import MemoryStore, SQLiteStore
from .views import ViewStore

__all__ = [
    "__version__",
    "Autotag",
    "AutotagOptions",
    "PageLocator",
    "DomSnapshot",
    "CycleResult",
    "TagDiff",
    "TopicExtractor",
    "UrlFilter",
    "normalize",
    "ViewStore",
    "reconcile",
    "apply_diff",
    "MemoryStore",
    "SQLiteStore",
    "MemoryTagRegistry",
    "SQLiteTagRegistry",
    "HttpTagRegistry",
    "AutotagError",
    "ConfigError",
    "StorageError",
    "TagRegistryError",
    "TagRegistryAuthError",
    "TagRegistryNotFoundError",
    "TagRegistryRateLimitError",
    "TagRegistryServerError",
]
