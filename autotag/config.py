"""
Autotag — Centralized configuration
All environment variables and constants in a single place.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = _PROJECT_ROOT / "data"

# Database (CLI backends only)
DEFAULT_DB_PATH = str(DATA_DIR / "autotag.db")
DB_PATH = os.getenv("AUTOTAG_DB_PATH", DEFAULT_DB_PATH)

# ── Storage ───────────────────────────────────────────────────────────────────

STORAGE_KEY = "viewsByTopic"
# Name used by earlier releases; kept for reference, never read
LEGACY_STORAGE_KEY = "viewsByCategory"

# ── Option defaults ───────────────────────────────────────────────────────────

DEFAULT_URL_POSITION = 1
DEFAULT_NUM_TOPICS = 1
DEFAULT_MIN_VIEWS = 3
MIN_VIEWS_FLOOR = 2
DEFAULT_AGE_MID_WEIGHT = 2_592_000_000  # 30 days in ms
DEFAULT_TAG_PREFIX = os.getenv("AUTOTAG_TAG_PREFIX", "topic:")

# ── Extraction ────────────────────────────────────────────────────────────────

MAX_TOKEN_LENGTH = 50
META_NAMES = ("og:title", "og:description", "twitter:title", "twitter:description")

# ── Logging ───────────────────────────────────────────────────────────────────

LOG_LEVEL = os.getenv("AUTOTAG_LOG_LEVEL", "warning")

# ── Version ───────────────────────────────────────────────────────────────────

VERSION = "1.0.0"
