"""
local_storage.py — durable key-value storage used by the stores.

Same shape as a browser's localStorage:
  get(key)         → str | None
  set(key, value)  → None
  remove(key)      → None

Values are plain strings; callers own their serialization (the history
store writes a JSON list). Backed by the kv_store table in database.py.
"""
from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Lazy import to avoid creating the data dir before config/tests set DATA_DIR
_db = None


def _get_db():
    global _db
    if _db is None:
        import database as db
        _db = db
    return _db


async def get(key: str) -> Optional[str]:
    """Return the stored string for key, or None if missing."""
    return await _get_db().get_value(key)


async def set(key: str, value: str) -> None:
    """Persist value under key, replacing any previous value."""
    await _get_db().set_value(key, value)


async def remove(key: str) -> None:
    """Remove key. Removing a missing key is not an error."""
    removed = await _get_db().delete_value(key)
    if not removed:
        logger.debug("local_storage: %s was not set", key)
