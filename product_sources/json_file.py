"""
JSON file product source.

Reads a file holding a JSON array of product records (the same shape the
AI-backed source returns) and filters it by query. Useful offline, in
tests, and for replaying a captured search.

Matching: every whitespace-separated query word must appear (case-
insensitive) in the product name, retailer or any spec value. An empty
query returns every product.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from product_sources.base import Product, ProductSource, parse_products

logger = logging.getLogger(__name__)


class JsonFileSource(ProductSource):

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return f"JSON file ({self._path.name})"

    async def search(self, query: str, currency: str = "USD") -> list[Product]:
        products = self._load()
        words = query.lower().split()
        if not words:
            return products
        return [p for p in products if all(w in _haystack(p) for w in words)]

    def _load(self) -> list[Product]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("[%s] Could not read products: %s", self.name, exc)
            return []
        return parse_products(data)


def _haystack(product: Product) -> str:
    parts = [product.name, product.retailer, *(str(v) for v in product.specs.values())]
    return " ".join(parts).lower()
