"""Chapter content providers.

A provider turns (book, chapter) into a raw chapter payload. Payloads
come in three shapes, all of which the fetcher accepts:

    {"book": ..., "chapter": ..., "text": ["verse 1", "verse 2", ...]}
    {"book": ..., "chapter": ..., "verses": [{"number": 1, "text": ...}, ...]}
    {"book": ..., "chapter": ..., "text": "[1] verse 1\\n[2] verse 2"}

Providers signal failure by raising; the fetcher turns any exception
into error content.

Provides:
- ChapterProvider: Protocol for chapter lookup
- ChapterPayload / VersePayload: Validated payload models
- BibliaApiProvider: HTTP provider for the biblia-api service
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://biblia-api.vercel.app/api/v1"
DEFAULT_TIMEOUT = 10.0


class ProviderError(Exception):
    """Raised when a provider cannot deliver a chapter."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class VersePayload(BaseModel):
    """One verse in the object-list payload shape."""

    number: int
    text: str


class ChapterPayload(BaseModel):
    """Chapter payload as returned by a provider.

    Exactly how the verse text is encoded varies; see the module
    docstring. Unknown extra keys are ignored.
    """

    book: str | None = None
    chapter: int | None = None
    text: list[str] | str | None = None
    verses: list[VersePayload] | None = None
    error: str | None = None


@runtime_checkable
class ChapterProvider(Protocol):
    """Interface for chapter content lookup."""

    async def provide(self, book: str, chapter: int) -> Mapping[str, Any]:
        """Return the raw payload for a chapter.

        Args:
            book: Resolved, accent-folded, lowercased book name
            chapter: Chapter number

        Raises:
            Any exception on failure (the fetcher handles it)
        """
        ...


class BibliaApiProvider:
    """Fetches chapters from the biblia-api HTTP service.

    URL layout is {base_url}/{book}/{chapter}, with the book lowercased
    and its spaces removed ("1 cronicas" -> "1cronicas").

    A client can be passed in (and stays owned by the caller); otherwise
    one is created on first use and closed by aclose(). An owned client
    belongs to the event loop it was created on, and a new one is made
    when called from another loop (e.g. a later asyncio.run()).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._client_loop: asyncio.AbstractEventLoop | None = None

    def chapter_url(self, book: str, chapter: int) -> str:
        """Build the request URL for a chapter."""
        slug = re.sub(r"\s+", "", book.lower())
        return f"{self.base_url}/{quote(slug)}/{chapter}"

    def _get_client(self) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        if self._owns_client and self._client is not None:
            if self._client_loop is not loop:
                # Its connections are bound to a loop that may be closed
                logger.debug("Event loop changed, creating a new HTTP client")
                self._client = None
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._client_loop = loop
        return self._client

    async def provide(self, book: str, chapter: int) -> dict[str, Any]:
        """Fetch a chapter payload.

        Raises:
            ProviderError: On transport errors, non-2xx responses,
                non-JSON bodies and {"error": ...} payloads
        """
        url = self.chapter_url(book, chapter)
        logger.info(f"Fetching {book} {chapter} from {url}")

        try:
            response = await self._get_client().get(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise ProviderError(f"Network error for {book} {chapter}: {e}") from e

        if not response.is_success:
            raise ProviderError(
                f"API Error {response.status_code} for {book}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Invalid JSON from provider for {book} {chapter}"
            ) from e

        if not isinstance(data, dict):
            raise ProviderError(
                f"Unexpected payload type for {book} {chapter}: {type(data).__name__}"
            )

        if data.get("error"):
            raise ProviderError(str(data["error"]))

        return data

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client and self._client is not None:
            if self._client_loop is asyncio.get_running_loop():
                await self._client.aclose()
            self._client = None
            self._client_loop = None

    async def __aenter__(self) -> "BibliaApiProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
