"""
comparison.py — the bounded set of products the user is comparing.

Rules:
  • membership is keyed by Product.id, insertion order is kept
  • adding a product that's already present is a no-op
  • adding when the set is full is a no-op (never an error)
  • removing an id that isn't present is a no-op

Products are stored as copies so later edits to a search-result Product
don't leak into the comparison.
"""
from __future__ import annotations

import logging
from typing import Iterator, Optional

import config
from product_sources.base import Product

logger = logging.getLogger(__name__)


class ComparisonStore:

    def __init__(self, capacity: Optional[int] = None) -> None:
        self.capacity = config.MAX_COMPARISON_ITEMS if capacity is None else capacity
        if self.capacity < 1:
            raise ValueError(f"Comparison capacity must be >= 1, got {self.capacity}")
        self._products: list[Product] = []

    @property
    def products(self) -> list[Product]:
        """Snapshot of the compared products, in the order they were added."""
        return list(self._products)

    @property
    def is_full(self) -> bool:
        return len(self._products) >= self.capacity

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(list(self._products))

    def __contains__(self, product_id: object) -> bool:
        return isinstance(product_id, str) and self.contains(product_id)

    def add(self, product: Product) -> bool:
        """Append product. Returns False when it was ignored (duplicate or full)."""
        if self.contains(product.id):
            logger.debug("Comparison: %s already present, ignored", product.id)
            return False
        if self.is_full:
            logger.debug("Comparison full (%d), %s ignored", self.capacity, product.id)
            return False
        self._products.append(product.copy())
        return True

    def remove(self, product_id: str) -> None:
        self._products = [p for p in self._products if p.id != product_id]

    def contains(self, product_id: str) -> bool:
        return any(p.id == product_id for p in self._products)

    def clear(self) -> None:
        self._products = []
