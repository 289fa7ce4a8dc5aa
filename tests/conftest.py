"""Shared fixtures for bibleplan tests."""

from __future__ import annotations

import asyncio
import json
import threading
from datetime import date
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from bibleplan.cache import ChapterCache
from bibleplan.config import ENV_OVERRIDES, CONFIG_ENV
from bibleplan.fetcher import ChapterFetcher


class FakeProvider:
    """In-memory chapter provider that records every call.

    Args:
        payloads: {(book, chapter): payload} overrides
        error: Exception to raise from every call
        gate: Event the provider waits on before answering
    """

    def __init__(
        self,
        payloads: dict | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ):
        self.payloads = payloads or {}
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, int]] = []
        self.closed = False

    async def provide(self, book: str, chapter: int) -> dict:
        self.calls.append((book, chapter))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if (book, chapter) in self.payloads:
            return self.payloads[(book, chapter)]
        return {
            "text": [
                f"{book} {chapter} primer verso",
                f"{book} {chapter} segundo verso",
                f"{book} {chapter} tercer verso",
            ]
        }

    async def aclose(self) -> None:
        self.closed = True


GENESIS_TEXT = "[1] En el principio...\n[2] Y la tierra estaba..."


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep BIBLEPLAN_* variables from the host out of tests."""
    for var in [*ENV_OVERRIDES, CONFIG_ENV]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_provider():
    """Factory for fake providers."""
    return FakeProvider


@pytest.fixture
def make_fetcher():
    """Factory for fetchers with "today" fixed at 2026-02-20 (Exodo 1)."""

    def _make(provider: FakeProvider, cache: ChapterCache | None = None):
        return ChapterFetcher(provider, cache=cache, today=lambda: date(2026, 2, 20))

    return _make


@pytest.fixture
def provider():
    """Fake provider with Genesis 1 as a tagged text string."""
    genesis_1 = {"book": "Genesis", "chapter": 1, "text": GENESIS_TEXT}
    return FakeProvider(payloads={("genesis", 1): genesis_1})


@pytest.fixture
def fetcher(provider, make_fetcher):
    """Fetcher over the default fake provider."""
    return make_fetcher(provider, ChapterCache())


class _ChapterHandler(BaseHTTPRequestHandler):
    """Answers GET /<prefix>/<book>/<chapter> with a keep-alive JSON payload."""

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        book, chapter = self.path.rstrip("/").split("/")[-2:]
        body = json.dumps(
            {"book": book, "chapter": int(chapter), "text": [f"{book} {chapter}"]}
        ).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def chapter_server():
    """Local HTTP/1.1 chapter API; yields its base URL."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _ChapterHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/api/v1"
    server.shutdown()
    server.server_close()
