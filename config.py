"""
Central configuration — reads from .env file.

Every value has a sane default so the comparison core runs without any
.env at all. Code reads config.X at call time, so tests can monkeypatch
module attributes and get the new value immediately.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Comparison ────────────────────────────────────────────────────────────────
# Products beyond this count are silently ignored by ComparisonStore.add()
MAX_COMPARISON_ITEMS: int = int(os.getenv("MAX_COMPARISON_ITEMS", "4"))

# Currency used when the caller doesn't pick one (USD / EUR / GBP / INR / JPY / CAD)
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD").upper()

# ── Search history ────────────────────────────────────────────────────────────
MAX_HISTORY_ITEMS: int    = int(os.getenv("MAX_HISTORY_ITEMS", "5"))
HISTORY_STORAGE_KEY: str  = os.getenv("HISTORY_STORAGE_KEY", "search_history")

# ── Recommendations ───────────────────────────────────────────────────────────
# How many recent searches feed the recommendation context, and how many
# products to keep from the answer
RECOMMENDATION_HISTORY_TERMS: int = int(os.getenv("RECOMMENDATION_HISTORY_TERMS", "3"))
MAX_RECOMMENDATIONS: int          = int(os.getenv("MAX_RECOMMENDATIONS", "4"))

# ── Outbound links ────────────────────────────────────────────────────────────
# The redirect endpoint lives outside this package; we only build links to it.
OUTBOUND_BASE_URL: str = os.getenv("OUTBOUND_BASE_URL", "/api/outbound")

# ── Image fallback ────────────────────────────────────────────────────────────
# {name} is the URL-encoded product name, {seed} a random number so every
# failure gets a fresh image instead of a cached miss.
GENERATIVE_IMAGE_URL: str = os.getenv(
    "GENERATIVE_IMAGE_URL",
    "https://image.pollinations.ai/prompt/product photo of {name} studio lighting high quality"
    "?width=400&height=400&nologo=true&seed={seed}",
)
PLACEHOLDER_IMAGE_URL: str = os.getenv(
    "PLACEHOLDER_IMAGE_URL", "https://via.placeholder.com/400x400?text=No+Image"
)
# Seconds before an image probe counts as a failed load
IMAGE_PROBE_TIMEOUT: float = float(os.getenv("IMAGE_PROBE_TIMEOUT", "5"))
