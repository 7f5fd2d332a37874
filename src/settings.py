"""Static configuration for rewind.

All user-editable settings (source, destination, retention, storage,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os
from datetime import timedelta

from core.config import RetentionPolicy, StorageConfig, build_destination_strategy
from core.source_keys import expand_source_key_variants

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# REWIND_CONFIG lets several watchers share one checkout.
CONFIG_PATH = os.getenv("REWIND_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# The single monitored chat, as `@username` or `chat_id:<id>`.
SOURCE = _CONFIG.get("source")
if not SOURCE:
    raise ValueError("config.json must set 'source'")
SOURCE_KEYS = expand_source_key_variants(str(SOURCE))

# Where recall notices go: a static chat or keyword-triggered discovery.
DESTINATION_STRATEGY = build_destination_strategy(_CONFIG.get("destination", {}))

# Retention window; rows older than this are pruned on every recall.
_retention = _CONFIG.get("retention", {})
RETENTION = RetentionPolicy(max_age=timedelta(minutes=float(_retention.get("max_age_minutes", 5))))

# The database is wiped on startup so nothing outlives a run.
_storage = _CONFIG.get("storage", {})
_db_path = _storage.get("db_path", "rewind.db")
if not os.path.isabs(_db_path):
    _db_path = os.path.join(os.path.dirname(__file__), _db_path)
STORAGE = StorageConfig(db_path=_db_path, wipe_on_start=bool(_storage.get("wipe_on_start", True)))

# Notification parse mode passed to Telethon ("Markdown" or "html").
_notifications = _CONFIG.get("notifications", {})
PARSE_MODE = _notifications.get("parse_mode", "Markdown")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
