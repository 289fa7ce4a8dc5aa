"""Chapter fetching with an in-memory cache.

ChapterFetcher.fetch_chapter() is the single entry point: it resolves the
book name, serves from the cache when it can, and otherwise asks the
provider. It never raises for provider problems. A failed fetch comes
back as ChapterContent whose `error` is set and whose text starts with
ERROR_MARKER, so callers can branch on `content.ok` or on the text.

Concurrent requests for the same uncached chapter share one provider
call. Failures are handed to every waiter but are not cached.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from pydantic import ValidationError

from bibleplan.books import BookNameResolver, fold_diacritics
from bibleplan.cache import ChapterCache, cache_key
from bibleplan.plan import START_DATE, get_chapter_for_date
from bibleplan.provider import ChapterPayload, ChapterProvider, ProviderError

logger = logging.getLogger(__name__)

ERROR_MARKER = "Error cargando lectura."
OFFLINE_REFERENCE = "Sin conexión"


@dataclass(frozen=True)
class FetchError:
    """Why a chapter could not be fetched."""

    book: str
    chapter: int
    detail: str
    status_code: int | None = None


@dataclass(frozen=True)
class ChapterContent:
    """A fetched chapter.

    `text` is verse-tagged, one verse per line: "[1] ...\\n[2] ...".
    On failure `error` is set, `text` starts with ERROR_MARKER and
    `reference` is OFFLINE_REFERENCE.
    """

    book: str
    chapter: int
    text: str
    reference: str
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_error(cls, error: FetchError) -> "ChapterContent":
        return cls(
            book=error.book,
            chapter=error.chapter,
            text=f"{ERROR_MARKER}\n\nDetalle: {error.detail}",
            reference=OFFLINE_REFERENCE,
            error=error,
        )


def normalize_payload(data: Mapping[str, Any]) -> tuple[ChapterPayload, str]:
    """Validate a provider payload and render its verses as tagged text.

    Args:
        data: Raw provider payload

    Returns:
        Tuple of (validated payload, "[n] text" lines joined by newlines)

    Raises:
        ProviderError: If the payload carries an error or has no
            recognizable verse text
    """
    try:
        payload = ChapterPayload.model_validate(data)
    except ValidationError as e:
        raise ProviderError(
            f"Formato de respuesta desconocido. ({e.error_count()} errors)"
        ) from e

    if payload.error:
        raise ProviderError(payload.error)

    if isinstance(payload.text, list):
        text = "\n".join(f"[{i}] {t}" for i, t in enumerate(payload.text, start=1))
    elif payload.verses is not None:
        text = "\n".join(f"[{v.number}] {v.text}" for v in payload.verses)
    elif isinstance(payload.text, str):
        text = payload.text
    else:
        raise ProviderError("Formato de respuesta desconocido.")

    return payload, text


class ChapterFetcher:
    """Fetches chapters through a provider, caching successful results.

    Args:
        provider: Chapter content provider
        cache: Session cache (a fresh unbounded cache if omitted)
        resolver: Book name resolver (default tables if omitted)
        start_date: Reading plan start, used when no chapter is requested
        today: Returns "today" for the reading plan, injectable for tests
    """

    def __init__(
        self,
        provider: ChapterProvider,
        cache: ChapterCache | None = None,
        resolver: BookNameResolver | None = None,
        start_date: date = START_DATE,
        today: Callable[[], date] = date.today,
    ):
        self.provider = provider
        self.cache = cache if cache is not None else ChapterCache()
        self.resolver = resolver or BookNameResolver()
        self.start_date = start_date
        self._today = today
        self._inflight: dict[str, asyncio.Future[ChapterContent]] = {}

    async def fetch_chapter(
        self, book: str | None = None, chapter: int | None = None
    ) -> ChapterContent:
        """Return the content of a chapter.

        Without both book and chapter, today's reading plan chapter is used.

        Args:
            book: Book name or abbreviation
            chapter: Chapter number

        Returns:
            ChapterContent, with `error` set when the provider failed
        """
        if not book or not chapter:
            ref = get_chapter_for_date(self._today(), self.start_date)
            book, chapter = ref.book, ref.chapter

        resolved = self.resolver.resolve(book)
        key = cache_key(resolved, chapter)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug(f"Joining in-flight fetch: {key}")
            await asyncio.wait({pending})
            if pending.cancelled():
                logger.debug(f"In-flight fetch for {key} was cancelled, retrying")
                return await self.fetch_chapter(book, chapter)
            return pending.result()

        future: asyncio.Future[ChapterContent] = (
            asyncio.get_running_loop().create_future()
        )
        self._inflight[key] = future
        api_book = fold_diacritics(resolved).lower()
        try:
            content = await self._load(resolved, chapter, api_book)
        except BaseException:
            # Cancelled while waiting on the provider; waiters start over
            future.cancel()
            raise
        finally:
            del self._inflight[key]

        if content.ok:
            self.cache.put(key, content)
        future.set_result(content)
        return content

    async def _load(self, book: str, chapter: int, api_book: str) -> ChapterContent:
        try:
            data = await self.provider.provide(api_book, chapter)
            payload, text = normalize_payload(data)
        except Exception as e:
            logger.warning(f"Error fetching {book} {chapter}: {e}")
            return ChapterContent.from_error(
                FetchError(
                    book=book,
                    chapter=chapter,
                    detail=str(e),
                    status_code=getattr(e, "status_code", None),
                )
            )

        result_book = payload.book or book
        result_chapter = payload.chapter or chapter
        return ChapterContent(
            book=result_book,
            chapter=result_chapter,
            text=text,
            reference=f"{result_book} {result_chapter}",
        )
