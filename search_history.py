"""
search_history.py — most-recent-first list of past search terms.

  • blank terms are ignored
  • re-searching a term (any casing) moves it to the front, keeping the
    casing of the latest search
  • the list is capped at MAX_HISTORY_ITEMS; the oldest terms drop off
  • every change is persisted as a JSON list under HISTORY_STORAGE_KEY

`history` stays empty until load() has run once, so a UI never flashes an
empty list and then the real one.

The storage collaborator is anything with async get/set/remove: the
local_storage module by default.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import config

logger = logging.getLogger(__name__)


class HistoryStore:

    def __init__(
        self,
        storage: Any = None,
        capacity: Optional[int] = None,
        key: Optional[str] = None,
    ) -> None:
        if storage is None:
            import local_storage
            storage = local_storage
        self._storage = storage
        self.capacity = config.MAX_HISTORY_ITEMS if capacity is None else capacity
        if self.capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {self.capacity}")
        self.key = key or config.HISTORY_STORAGE_KEY
        self._terms: list[str] = []
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def history(self) -> list[str]:
        """Saved terms, newest first. Empty until load() has completed."""
        return list(self._terms) if self._ready else []

    async def load(self) -> list[str]:
        """
        Read the persisted list once. A missing, corrupt or unreadable value
        means "no history": it's logged, never raised.
        """
        if self._ready:
            return self.history

        try:
            saved = await self._storage.get(self.key)
        except Exception as exc:
            logger.error("Failed to read search history: %s", exc)
            saved = None

        if saved:
            self._terms = self._decode(saved)
        self._ready = True
        logger.debug("Search history loaded: %d term(s)", len(self._terms))
        return self.history

    async def add_search(self, term: str) -> None:
        term = (term or "").strip()
        if not term:
            return
        # apply on top of the persisted list, never over it
        if not self._ready:
            await self.load()
        lowered = term.lower()
        filtered = [t for t in self._terms if t.lower() != lowered]
        self._terms = [term, *filtered][: self.capacity]
        await self._persist()

    async def clear_history(self) -> None:
        self._terms = []
        self._ready = True
        try:
            await self._storage.remove(self.key)
        except Exception as exc:
            logger.error("Failed to remove persisted search history: %s", exc)

    # ── Internal ──────────────────────────────────────────────────────────────

    async def _persist(self) -> None:
        try:
            await self._storage.set(self.key, json.dumps(self._terms))
        except Exception as exc:
            logger.error("Failed to persist search history: %s", exc)

    def _decode(self, saved: str) -> list[str]:
        try:
            data = json.loads(saved)
        except (TypeError, ValueError) as exc:
            logger.error("Failed to parse search history: %s", exc)
            return []
        if not isinstance(data, list):
            logger.error("Search history is %s, expected a list, ignored", type(data).__name__)
            return []
        terms = [t for t in data if isinstance(t, str) and t.strip()]
        return terms[: self.capacity]
