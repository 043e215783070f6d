"""
image_fallback.py — pick a displayable image URL for a product.

Each image runs its own small state machine, driven by load / error events
from whatever actually fetches the URL:

  PRIMARY      the URL the product source gave us
      │ error
      ▼
  GENERATIVE   AI-generated product shot (skipped when there's no name)
      │ error
      ▼
  PLACEHOLDER  generic "No Image" picture
      │ error
      ▼
  FAILED       terminal, show an "Image unavailable" indicator

A successful load at any step ends the sequence. The attempt never moves
backwards; only set_source() with a different URL restarts at PRIMARY.

resolve_image() / resolve_images() drive machines to completion with an
async fetch callable (aiohttp probe by default).
"""
from __future__ import annotations

import asyncio
import logging
import random
from enum import Enum
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

import aiohttp

import config

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[bool]]


class ImageAttempt(Enum):
    PRIMARY = "primary"
    GENERATIVE = "generative"
    PLACEHOLDER = "placeholder"
    FAILED = "failed"


def generative_image_url(product_name: str, seed: Optional[float] = None) -> str:
    """Image-generation URL for product_name; a new seed gives a new image."""
    if seed is None:
        seed = random.random()
    return config.GENERATIVE_IMAGE_URL.format(name=quote(product_name, safe=""), seed=seed)


class ImageResolution:

    def __init__(
        self,
        src: str,
        product_name: str = "",
        seed_factory: Callable[[], float] = random.random,
    ) -> None:
        self.product_name = product_name
        self._seed_factory = seed_factory
        self._reset(src)

    def _reset(self, src: str) -> None:
        self.src = src
        self.attempt = ImageAttempt.PRIMARY
        self.current_url: Optional[str] = src
        self.loading = True
        self.loaded = False

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def failed(self) -> bool:
        return self.attempt is ImageAttempt.FAILED

    @property
    def done(self) -> bool:
        """True once no further automatic transition can happen."""
        return self.loaded or self.failed

    # ── Events ────────────────────────────────────────────────────────────────

    def set_source(self, src: str) -> None:
        """A new source restarts the whole sequence; the same one is ignored."""
        if src != self.src:
            self._reset(src)

    def on_load(self) -> None:
        if self.done:
            return
        self.loaded = True
        self.loading = False

    def on_error(self) -> None:
        if self.done:
            return

        if self.attempt is ImageAttempt.PRIMARY and self.product_name:
            self.attempt = ImageAttempt.GENERATIVE
            self.current_url = generative_image_url(self.product_name, self._seed_factory())
        elif self.attempt in (ImageAttempt.PRIMARY, ImageAttempt.GENERATIVE):
            self.attempt = ImageAttempt.PLACEHOLDER
            self.current_url = config.PLACEHOLDER_IMAGE_URL
        else:
            self.attempt = ImageAttempt.FAILED
            self.current_url = None
            self.loading = False
        logger.debug("Image fallback → %s (%s)", self.attempt.value, self.current_url)


# ── Drivers ───────────────────────────────────────────────────────────────────

async def probe_image(url: str, session: Optional[aiohttp.ClientSession] = None) -> bool:
    """True when url answers 2xx with an image content type."""
    timeout = aiohttp.ClientTimeout(total=config.IMAGE_PROBE_TIMEOUT)

    async def _get(s: aiohttp.ClientSession) -> bool:
        async with s.get(url, timeout=timeout, allow_redirects=True) as resp:
            if not 200 <= resp.status < 300:
                return False
            return resp.headers.get("Content-Type", "").startswith("image/")

    try:
        if session is not None:
            return await _get(session)
        async with aiohttp.ClientSession() as own:
            return await _get(own)
    except Exception as exc:
        logger.debug("Image probe failed for %s: %s", url[:80], exc)
        return False


async def resolve_image(
    src: str,
    product_name: str = "",
    fetch: Optional[Fetch] = None,
) -> ImageResolution:
    """Run one image through the fallback sequence until it loads or fails."""
    fetch = fetch or probe_image
    machine = ImageResolution(src, product_name)

    while not machine.done:
        url = machine.current_url
        try:
            ok = bool(url) and await fetch(url)
        except Exception as exc:
            logger.warning("Image fetch raised for %s: %s", (url or "")[:80], exc)
            ok = False
        if ok:
            machine.on_load()
        else:
            machine.on_error()

    if machine.failed:
        logger.info("No image available for %r", product_name or src)
    return machine


async def resolve_images(
    items: list[tuple[str, str]],
    fetch: Optional[Fetch] = None,
) -> list[ImageResolution]:
    """
    Resolve many (src, product_name) pairs concurrently.
    Each image is independent; one failing never affects another.
    """
    if fetch is None:
        async with aiohttp.ClientSession() as session:
            async def _fetch(url: str) -> bool:
                return await probe_image(url, session)
            return list(await asyncio.gather(
                *[resolve_image(src, name, _fetch) for src, name in items]
            ))
    return list(await asyncio.gather(*[resolve_image(src, name, fetch) for src, name in items]))
