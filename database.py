"""
database.py — async SQLite persistence via aiosqlite.

Tables:
  kv_store     — durable key-value pairs (search history lives here)
  search_logs  — one row per submitted search

The DB file is created automatically on first run.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

logger = logging.getLogger(__name__)

# Keep the DB in a dedicated data/ directory so a single volume mount
# (./data:/app/data) captures both the database and the log file.
_DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
_DATA_DIR.mkdir(parents=True, exist_ok=True)

DB_PATH = str(_DATA_DIR / "lumina.db")
_lock = asyncio.Lock()          # serialise schema creation


# ── Data models ───────────────────────────────────────────────────────────────

@dataclass
class SearchLog:
    id: int
    query: str
    currency: str
    result_count: int
    searched_at: datetime


# ── Schema ────────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS search_logs (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    query        TEXT    NOT NULL,
    currency     TEXT    NOT NULL DEFAULT 'USD',
    result_count INTEGER NOT NULL DEFAULT 0,
    searched_at  TEXT    NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_search_logs_at ON search_logs (searched_at);
"""


async def init_db() -> None:
    """Create tables if they don't exist. Safe to call multiple times."""
    async with _lock:
        async with aiosqlite.connect(DB_PATH) as db:
            await db.executescript(_SCHEMA)
            await db.commit()
    logger.info("Database initialised at %s", DB_PATH)


# ── Key-value operations ──────────────────────────────────────────────────────

async def get_value(key: str) -> Optional[str]:
    """Return the stored string for key, or None if it was never set."""
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else None


async def set_value(key: str, value: str) -> None:
    """Insert or overwrite key."""
    now = datetime.now(timezone.utc).isoformat()
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                              updated_at = excluded.updated_at""",
            (key, value, now),
        )
        await db.commit()


async def delete_value(key: str) -> bool:
    """Delete key. Returns True if a row was deleted."""
    async with aiosqlite.connect(DB_PATH) as db:
        cursor = await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await db.commit()
        return cursor.rowcount > 0


# ── Search log operations ─────────────────────────────────────────────────────

async def log_search(query: str, currency: str, result_count: int) -> None:
    """Record a search event."""
    now = datetime.now(timezone.utc).isoformat()
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            """INSERT INTO search_logs (query, currency, result_count, searched_at)
               VALUES (?, ?, ?, ?)""",
            (query, currency, result_count, now),
        )
        await db.commit()


async def get_recent_searches(limit: int = 20) -> list[SearchLog]:
    """Return the most recent search log rows, newest first."""
    async with aiosqlite.connect(DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT * FROM search_logs ORDER BY id DESC LIMIT ?", (limit,)
        ) as cursor:
            rows = await cursor.fetchall()
    return [
        SearchLog(
            id=r["id"],
            query=r["query"],
            currency=r["currency"],
            result_count=r["result_count"],
            searched_at=datetime.fromisoformat(r["searched_at"]),
        )
        for r in rows
    ]
