"""
highlight.py — decide which product "wins" each comparison row.

resolve() is the core rule, applied independently to every field:
  • only values with a numeric projection take part
  • fewer than two such values → nothing is highlighted
  • "price" fields → lowest wins
  • ram / battery / storage / screen / processor → highest wins
  • any other field → never highlighted
  • ties → every product at the winning extreme is flagged

build_matrix() runs resolve() over the Price row and every spec key of the
products being compared and returns a ready-to-render ComparisonMatrix.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import config
from spec_values import SpecValue, normalize

logger = logging.getLogger(__name__)

LOWER_IS_BETTER = "lower"
HIGHER_IS_BETTER = "higher"

_LOWER_KEYWORDS = ("price",)
_HIGHER_KEYWORDS = ("ram", "battery", "storage", "screen", "processor")

MISSING = "-"

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
    "CAD": "C$",
}


def field_direction(field_name: str) -> Optional[str]:
    """Return LOWER_IS_BETTER, HIGHER_IS_BETTER or None for field_name."""
    lowered = field_name.lower()
    if any(k in lowered for k in _LOWER_KEYWORDS):
        return LOWER_IS_BETTER
    if any(k in lowered for k in _HIGHER_KEYWORDS):
        return HIGHER_IS_BETTER
    return None


def resolve(
    field_name: str,
    values_by_product: Iterable[tuple[str, SpecValue]],
) -> set[str]:
    """
    Return the ids of the products holding the best value for field_name.

    values_by_product is an ordered sequence of (product_id, SpecValue).
    An empty set is a normal outcome (unknown field, too few comparable
    values), not an error.
    """
    direction = field_direction(field_name)
    if direction is None:
        return set()

    ranked = [(pid, v.rank) for pid, v in values_by_product if v.rank is not None]
    if len(ranked) < 2:
        return set()

    ranks = [r for _, r in ranked]
    best = min(ranks) if direction == LOWER_IS_BETTER else max(ranks)
    return {pid for pid, r in ranked if r == best}


# ── Comparison matrix ─────────────────────────────────────────────────────────

@dataclass
class MatrixCell:
    product_id: str
    display: str
    best: bool = False


@dataclass
class MatrixRow:
    field_name: str
    cells: list[MatrixCell] = field(default_factory=list)

    @property
    def winners(self) -> list[str]:
        return [c.product_id for c in self.cells if c.best]


@dataclass
class ComparisonMatrix:
    product_ids: list[str]
    rows: list[MatrixRow]

    @property
    def is_empty(self) -> bool:
        return not self.product_ids

    def row(self, field_name: str) -> Optional[MatrixRow]:
        for r in self.rows:
            if r.field_name == field_name:
                return r
        return None


def format_price(price: float, currency: str = "") -> str:
    """Whole-unit price with the currency symbol, e.g. "$1,299"."""
    code = (currency or config.DEFAULT_CURRENCY).upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    return f"{symbol}{price:,.0f}"


def _display(raw) -> str:
    if raw is None:
        return MISSING
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def spec_keys(products: Sequence) -> list[str]:
    """Union of spec keys across products, in first-seen order."""
    seen: dict[str, None] = {}
    for p in products:
        for key in p.specs:
            seen.setdefault(key, None)
    return list(seen)


def build_matrix(products: Sequence, currency: str = "") -> ComparisonMatrix:
    """
    Build the comparison rows for products (anything with id / price / specs).

    Row order: "Price" first, then spec keys in first-seen order.
    Missing spec values display as "-" and never win.
    """
    ids = [p.id for p in products]
    if not products:
        return ComparisonMatrix(product_ids=[], rows=[])

    rows: list[MatrixRow] = []

    prices = [(p.id, normalize(p.price)) for p in products]
    price_best = resolve("Price", prices)
    rows.append(MatrixRow(
        field_name="Price",
        cells=[
            MatrixCell(p.id, format_price(p.price, currency), p.id in price_best)
            for p in products
        ],
    ))

    for key in spec_keys(products):
        raw_values = [(p.id, p.specs.get(key)) for p in products]
        values = [
            (pid, normalize(raw) if raw is not None else SpecValue.text(MISSING))
            for pid, raw in raw_values
        ]
        best = resolve(key, values)
        rows.append(MatrixRow(
            field_name=key,
            cells=[MatrixCell(pid, _display(raw), pid in best) for pid, raw in raw_values],
        ))

    logger.debug("Built comparison matrix: %d products × %d rows", len(ids), len(rows))
    return ComparisonMatrix(product_ids=ids, rows=rows)
