"""
search.py — what happens when the user submits a search.

  1. The term goes into search history.
  2. The product search and the optional quick-answer lookup run in
     parallel; neither waits for the other.
  3. Products are de-duplicated by id (first occurrence wins).
  4. The search is logged to the DB (best effort).

recommend() asks a product source for new products based on recent
searches and what is being compared, skipping anything already compared.

Collaborator failures never escape: a failed product search yields an
empty result (rendered as the empty state), a failed quick answer yields "".
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import config
import database as db
from comparison import ComparisonStore
from product_sources.base import Product, ProductSource
from search_history import HistoryStore
from spec_values import normalize_specs

logger = logging.getLogger(__name__)

QuickAnswer = Callable[[str], Awaitable[str]]

QUICK_ANSWER_PROMPT = (
    "What are the key things to consider when buying {query}? Keep it under 50 words."
)


@dataclass
class SearchResult:
    query: str
    currency: str
    products: list[Product] = field(default_factory=list)
    quick_answer: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.products


async def _safe_products(source: ProductSource, query: str, currency: str) -> list[Product]:
    try:
        products = await source.search(query, currency)
        logger.info("[%s] '%s' → %d products", source.name, query, len(products or []))
        return list(products or [])
    except Exception as exc:
        logger.error("[%s] Product search failed: %s", source.name, exc)
        return []


async def _safe_answer(answer: Optional[QuickAnswer], query: str) -> str:
    if answer is None:
        return ""
    try:
        return (await answer(QUICK_ANSWER_PROMPT.format(query=query))) or ""
    except Exception as exc:
        logger.warning("Quick answer failed: %s", exc)
        return ""


def dedupe(products: list[Product]) -> list[Product]:
    """Drop repeated ids, keeping the first occurrence and the original order."""
    seen: dict[str, Product] = {}
    for p in products:
        if p.id not in seen:
            seen[p.id] = p
    return list(seen.values())


async def run_search(
    query: str,
    source: ProductSource,
    history: Optional[HistoryStore] = None,
    currency: Optional[str] = None,
    quick_answer: Optional[QuickAnswer] = None,
) -> SearchResult:
    """
    Submit one search. A blank query returns an empty result without
    touching history or the collaborators.
    """
    currency = (currency or config.DEFAULT_CURRENCY).upper()
    query = query.strip()
    if not query:
        return SearchResult(query="", currency=currency)

    if history is not None:
        await history.add_search(query)

    products, answer = await asyncio.gather(
        _safe_products(source, query, currency),
        _safe_answer(quick_answer, query),
    )
    products = dedupe(products)

    try:
        await db.log_search(query, currency, len(products))
    except Exception as exc:
        logger.warning("Failed to log search: %s", exc)

    return SearchResult(query=query, currency=currency, products=products, quick_answer=answer)


# ── Recommendations ───────────────────────────────────────────────────────────

RECOMMENDATION_PROMPT = (
    "The user is interested in these topics: [{topics}]. "
    "They are currently comparing: [{compared}]. "
    "Recommend {count} NEW products they might like. "
    "Do not repeat products they are already comparing."
)
TRENDING_PROMPT = "Suggest {count} trending tech gadgets."


def recommendation_query(terms: list[str], compared_names: list[str], count: int) -> str:
    """Context sent to the source: recent topics plus the compared product names."""
    if not terms:
        return TRENDING_PROMPT.format(count=count)
    return RECOMMENDATION_PROMPT.format(
        topics=", ".join(terms),
        compared=", ".join(compared_names),
        count=count,
    )


async def recommend(
    history: HistoryStore,
    comparison: ComparisonStore,
    source: ProductSource,
    currency: Optional[str] = None,
) -> list[Product]:
    """
    Products the user might like next. Never includes a product that's
    already in the comparison; any source failure yields [].
    """
    currency = (currency or config.DEFAULT_CURRENCY).upper()
    if not history.ready:
        await history.load()

    terms = history.history[: config.RECOMMENDATION_HISTORY_TERMS]
    query = recommendation_query(
        terms, [p.name for p in comparison], config.MAX_RECOMMENDATIONS,
    )

    products = await _safe_products(source, query, currency)
    fresh = [
        _with_normalized_specs(p)
        for p in dedupe(products)
        if not comparison.contains(p.id)
    ]
    return fresh[: config.MAX_RECOMMENDATIONS]


def _with_normalized_specs(product: Product) -> Product:
    """Copy of product with wholly-numeric spec strings turned into numbers."""
    copy = product.copy()
    copy.specs = normalize_specs(product.specs)
    return copy
