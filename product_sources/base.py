"""
Abstract base for all product sources.
Every source must return the same Product list; the comparison core
doesn't care where products come from.

Sources are allowed to be sloppy (they're usually fed by a generative
model): parse_product() accepts whatever record shape they produce and
fills the gaps instead of rejecting the record.
"""
from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Optional
from urllib.parse import urlencode

import config
from spec_values import RawSpec, normalize_specs

logger = logging.getLogger(__name__)


@dataclass
class Product:
    id: str
    name: str
    price: float
    retailer: str = ""
    image_url: str = ""
    link: str = ""
    specs: dict[str, RawSpec] = field(default_factory=dict)    # field name → raw value, case kept

    def copy(self) -> "Product":
        """Independent copy; the specs mapping is not shared."""
        return replace(self, specs=dict(self.specs))

    # ── Outbound link ──────────────────────────────────────────────────────────

    def outbound_url(self, base: Optional[str] = None) -> str:
        """
        Link to the outbound redirect endpoint for this product.
        Only the (link, id) pair is supplied here. The redirect itself and
        any click tracking happen behind `base`.
        """
        base = base or config.OUTBOUND_BASE_URL
        return f"{base}?{urlencode({'url': self.link, 'id': self.id})}"


class ProductSource(ABC):
    """All product sources must implement this interface."""

    @abstractmethod
    async def search(self, query: str, currency: str = "USD") -> list[Product]:
        """
        Return products matching `query`, priced in `currency`.
        May return an empty list; should not return None.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source name for logs."""
        ...


# ── Parsing ───────────────────────────────────────────────────────────────────

def _parse_price(value: Any) -> float:
    """Numeric value from 1299, "1299.99", "$1,299.00"; 0.0 when unusable."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    try:
        cleaned = re.sub(r"[^\d.]", "", str(value).replace(",", ""))
        return float(cleaned) if cleaned else 0.0
    except ValueError:
        return 0.0


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_product(raw: Any) -> Optional[Product]:
    """
    Build a Product from one raw source record.
    Returns None only when the record can't identify a product at all
    (not a mapping, or no id / name). Accepts camelCase or snake_case keys.
    """
    if not isinstance(raw, dict):
        return None

    pid = raw.get("id")
    pid = str(pid).strip() if pid is not None else ""
    name = _text(raw.get("name"))
    if not pid or not name:
        logger.debug("Skipping product record without id/name: %r", raw)
        return None

    return Product(
        id=pid,
        name=name,
        price=_parse_price(raw.get("price")),
        retailer=_text(raw.get("retailer")),
        image_url=_text(raw.get("imageUrl", raw.get("image_url"))),
        link=_text(raw.get("link")),
        specs=normalize_specs(raw.get("specs")),
    )


def parse_products(records: Any) -> list[Product]:
    """Parse a list of raw records, dropping the unusable ones."""
    if not isinstance(records, list):
        logger.warning("Product source returned %s instead of a list", type(records).__name__)
        return []
    products = [p for p in (parse_product(r) for r in records) if p is not None]
    if len(products) < len(records):
        logger.info("Dropped %d malformed product record(s)", len(records) - len(products))
    return products
