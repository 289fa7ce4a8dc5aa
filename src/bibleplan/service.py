"""Caller-facing API.

BibleService wires settings, cache, provider and fetcher together for a
session. Most callers use the module-level functions, which share one
default service created on first use:

    ref = today_reference()
    chapter = await fetch_chapter()                  # today's chapter
    verses = await get_verse_text("Fil.", 4, "6-7")
    result = await lookup("Juan 3:16")

None of the async operations raise for provider failures or bad input;
problems come back as text (and as `error` fields where there is a
structured result).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from bibleplan.cache import ChapterCache
from bibleplan.config import Settings, load_settings
from bibleplan.fetcher import ChapterContent, ChapterFetcher
from bibleplan.plan import ChapterReference, get_chapter_for_date
from bibleplan.provider import BibliaApiProvider, ChapterProvider
from bibleplan.verses import QueryError, extract_verses, parse_query
from bibleplan.verses import get_verse_text as _get_verse_text

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    """Outcome of a reference lookup."""

    reference: str
    text: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BibleService:
    """One session: a cache, a provider and a fetcher sharing them.

    Args:
        settings: Settings (loaded from file/environment if omitted)
        provider: Chapter provider (HTTP provider from settings if omitted)
        cache: Chapter cache (built from settings if omitted)
        today: Returns "today", injectable for tests
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: ChapterProvider | None = None,
        cache: ChapterCache | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings if settings is not None else load_settings()
        self.provider = provider or BibliaApiProvider(
            base_url=self.settings.provider_base_url,
            timeout=self.settings.provider_timeout,
        )
        self.cache = (
            cache
            if cache is not None
            else ChapterCache(
                max_entries=self.settings.cache_max_entries,
                ttl_seconds=self.settings.cache_ttl_seconds,
            )
        )
        self._today = today
        self.fetcher = ChapterFetcher(
            self.provider,
            cache=self.cache,
            start_date=self.settings.start_date,
            today=today,
        )

    def today_reference(
        self, day: date | datetime | None = None
    ) -> ChapterReference:
        """Reading plan chapter for `day` (default: today)."""
        return get_chapter_for_date(day or self._today(), self.settings.start_date)

    async def fetch_chapter(
        self, book: str | None = None, chapter: int | None = None
    ) -> ChapterContent:
        """Fetch a chapter (today's when book/chapter are omitted)."""
        return await self.fetcher.fetch_chapter(book, chapter)

    async def get_verse_text(self, book: str, chapter: int, spec: str) -> str:
        """Fetch a chapter and extract the verses in spec."""
        return await _get_verse_text(self.fetcher, book, chapter, spec)

    async def lookup(self, query: str) -> LookupResult:
        """Look up a reference query ("Juan 3:16", "Salmos 23").

        Returns:
            LookupResult with the whole chapter or the requested verses;
            `error` is set when the query is invalid or the fetch failed
        """
        try:
            parsed = parse_query(query, self.fetcher.resolver)
        except QueryError as e:
            return LookupResult(reference=query.strip(), text=str(e), error=str(e))

        content = await self.fetcher.fetch_chapter(parsed.book, parsed.chapter)
        if content.error is not None:
            return LookupResult(
                reference=parsed.label, text=content.text, error=content.error.detail
            )

        if parsed.verses is None:
            return LookupResult(reference=parsed.label, text=content.text)

        text = extract_verses(content.text, parsed.verses, parsed.book, parsed.chapter)
        return LookupResult(reference=parsed.label, text=text)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def aclose(self) -> None:
        """Release provider resources (HTTP client)."""
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "BibleService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


_service: BibleService | None = None


def get_service() -> BibleService:
    """Return the default service, creating it on first use.

    Invalid configuration is logged and replaced by the defaults, so the
    module-level operations keep working.
    """
    global _service
    if _service is None:
        try:
            settings = load_settings()
        except ValueError as e:
            logger.error(f"Invalid configuration, using defaults: {e}")
            settings = Settings()
        _service = BibleService(settings)
    return _service


def reset_service(service: BibleService | None = None) -> None:
    """Replace the default service (None: recreate lazily on next use).

    The previous service is not closed; call its aclose() first if it
    owns an HTTP client.
    """
    global _service
    _service = service


async def fetch_chapter(
    book: str | None = None, chapter: int | None = None
) -> ChapterContent:
    """Fetch a chapter through the default service."""
    return await get_service().fetch_chapter(book, chapter)


async def get_verse_text(book: str, chapter: int, spec: str) -> str:
    """Extract verses through the default service."""
    return await get_service().get_verse_text(book, chapter, spec)


async def lookup(query: str) -> LookupResult:
    """Look up a reference query through the default service."""
    return await get_service().lookup(query)


def today_reference(day: date | datetime | None = None) -> ChapterReference:
    """Today's reading plan chapter, using the default service's start date."""
    return get_service().today_reference(day)
