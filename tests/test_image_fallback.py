"""
Tests for image_fallback.py.

Covers:
  - ImageResolution transitions: primary → generative → placeholder → failed
  - missing product name skips the generative step
  - load success is terminal; events after a terminal state are ignored
  - set_source(): new src resets, same src is a no-op
  - generative_image_url(): encoding + seed
  - resolve_image() / resolve_images() with fake fetchers
  - probe_image(): aiohttp response handling
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import config
import image_fallback
from image_fallback import (
    ImageAttempt,
    ImageResolution,
    generative_image_url,
    probe_image,
    resolve_image,
    resolve_images,
)

SRC = "https://img.example.com/laptop.jpg"


def machine(name: str = "MacBook Air") -> ImageResolution:
    return ImageResolution(SRC, name, seed_factory=lambda: 0.42)


# ── State machine ─────────────────────────────────────────────────────────────

class TestTransitions:
    def test_initial_state(self):
        m = machine()
        assert m.attempt is ImageAttempt.PRIMARY
        assert m.current_url == SRC
        assert m.loading is True
        assert not m.done

    def test_primary_failure_with_name_goes_generative(self):
        m = machine()
        m.on_error()
        assert m.attempt is ImageAttempt.GENERATIVE
        assert m.current_url == generative_image_url("MacBook Air", 0.42)

    def test_primary_failure_without_name_goes_placeholder(self):
        m = machine(name="")
        m.on_error()
        assert m.attempt is ImageAttempt.PLACEHOLDER
        assert m.current_url == config.PLACEHOLDER_IMAGE_URL

    def test_full_sequence_to_failed(self):
        m = machine()
        seen = []
        for _ in range(3):
            m.on_error()
            seen.append(m.attempt)
        assert seen == [ImageAttempt.GENERATIVE, ImageAttempt.PLACEHOLDER, ImageAttempt.FAILED]
        assert m.failed
        assert m.current_url is None
        assert m.loading is False

    def test_failed_is_terminal(self):
        m = machine(name="")
        m.on_error()
        m.on_error()
        m.on_error()
        m.on_load()
        assert m.attempt is ImageAttempt.FAILED
        assert not m.loaded

    def test_load_stops_transitions(self):
        m = machine()
        m.on_error()
        m.on_load()
        m.on_error()
        assert m.attempt is ImageAttempt.GENERATIVE
        assert m.loaded
        assert m.loading is False
        assert m.done

    def test_load_on_primary(self):
        m = machine()
        m.on_load()
        assert m.attempt is ImageAttempt.PRIMARY
        assert m.current_url == SRC

    def test_attempt_never_regresses(self):
        order = list(ImageAttempt)
        m = machine()
        last = order.index(m.attempt)
        for _ in range(5):
            m.on_error()
            now = order.index(m.attempt)
            assert now >= last
            last = now


class TestSetSource:
    def test_new_source_resets(self):
        m = machine()
        m.on_error()
        m.on_error()
        m.set_source("https://img.example.com/other.jpg")
        assert m.attempt is ImageAttempt.PRIMARY
        assert m.current_url == "https://img.example.com/other.jpg"
        assert m.loading is True

    def test_same_source_is_noop(self):
        m = machine()
        m.on_error()
        m.set_source(SRC)
        assert m.attempt is ImageAttempt.GENERATIVE

    def test_reset_after_failed(self):
        m = machine(name="")
        for _ in range(3):
            m.on_error()
        m.set_source("https://img.example.com/new.jpg")
        assert not m.done


class TestGenerativeUrl:
    def test_name_is_url_encoded(self):
        url = generative_image_url("Dell XPS 13 & Co", seed=1)
        assert "Dell%20XPS%2013%20%26%20Co" in url
        assert url.endswith("seed=1")

    def test_random_seed_differs(self):
        assert generative_image_url("Pixel 8") != generative_image_url("Pixel 8")

    def test_template_from_config(self, monkeypatch):
        monkeypatch.setattr(config, "GENERATIVE_IMAGE_URL", "https://gen.test/{name}?s={seed}")
        assert generative_image_url("a b", seed=7) == "https://gen.test/a%20b?s=7"


# ── Drivers ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestResolveImage:
    async def test_primary_success(self):
        fetch = AsyncMock(return_value=True)
        m = await resolve_image(SRC, "MacBook Air", fetch)
        assert m.loaded
        assert m.attempt is ImageAttempt.PRIMARY
        fetch.assert_awaited_once_with(SRC)

    async def test_falls_back_to_generative(self):
        async def fetch(url):
            return "pollinations" in url
        m = await resolve_image(SRC, "MacBook Air", fetch)
        assert m.loaded
        assert m.attempt is ImageAttempt.GENERATIVE

    async def test_no_name_skips_generative(self):
        calls = []

        async def fetch(url):
            calls.append(url)
            return url == config.PLACEHOLDER_IMAGE_URL
        m = await resolve_image(SRC, "", fetch)
        assert m.attempt is ImageAttempt.PLACEHOLDER
        assert calls == [SRC, config.PLACEHOLDER_IMAGE_URL]

    async def test_everything_fails(self):
        fetch = AsyncMock(return_value=False)
        m = await resolve_image(SRC, "MacBook Air", fetch)
        assert m.failed
        assert fetch.await_count == 3

    async def test_fetch_exception_counts_as_failure(self):
        fetch = AsyncMock(side_effect=[RuntimeError("boom"), True])
        m = await resolve_image(SRC, "MacBook Air", fetch)
        assert m.loaded
        assert m.attempt is ImageAttempt.GENERATIVE

    async def test_empty_src_is_a_failure(self):
        fetch = AsyncMock(return_value=True)
        m = await resolve_image("", "", fetch)
        assert m.attempt is ImageAttempt.PLACEHOLDER
        fetch.assert_awaited_once_with(config.PLACEHOLDER_IMAGE_URL)

    async def test_many_images_independent(self):
        async def fetch(url):
            return "good" in url
        results = await resolve_images(
            [("https://good.example.com/1.jpg", "A"), ("https://bad.example.com/2.jpg", "")],
            fetch,
        )
        assert results[0].loaded and results[0].attempt is ImageAttempt.PRIMARY
        assert results[1].failed


# ── probe_image() ─────────────────────────────────────────────────────────────

def _mock_session(status: int, content_type: str = "image/jpeg"):
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.headers = {"Content-Type": content_type}
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)

    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=mock_resp)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return mock_session


@pytest.mark.asyncio
class TestProbeImage:
    async def test_image_response_is_success(self):
        with patch("image_fallback.aiohttp.ClientSession", return_value=_mock_session(200)):
            assert await probe_image(SRC) is True

    async def test_http_error_is_failure(self):
        with patch("image_fallback.aiohttp.ClientSession", return_value=_mock_session(404)):
            assert await probe_image(SRC) is False

    async def test_non_image_content_is_failure(self):
        session = _mock_session(200, "text/html; charset=utf-8")
        with patch("image_fallback.aiohttp.ClientSession", return_value=session):
            assert await probe_image(SRC) is False

    async def test_network_error_is_failure(self):
        session = _mock_session(200)
        session.get = MagicMock(side_effect=image_fallback.aiohttp.ClientError("down"))
        with patch("image_fallback.aiohttp.ClientSession", return_value=session):
            assert await probe_image(SRC) is False

    async def test_uses_given_session(self):
        session = _mock_session(200)
        assert await probe_image(SRC, session) is True
        session.get.assert_called_once()
