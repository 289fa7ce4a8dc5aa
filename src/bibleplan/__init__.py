"""Bible reading plan and scripture reference engine.

- Reading plan: which chapter to read on a given day
- Book names: resolve abbreviations and accented spellings
- Chapters: fetch through a content provider, with a session cache
- Verses: extract single verses, ranges and lists from chapter text
"""

from bibleplan.books import BookNameResolver, fold_diacritics, resolve_book_name
from bibleplan.cache import ChapterCache
from bibleplan.canon import CANON, TOTAL_CHAPTERS, book_code, chapter_count
from bibleplan.fetcher import (
    ERROR_MARKER,
    OFFLINE_REFERENCE,
    ChapterContent,
    ChapterFetcher,
    FetchError,
)
from bibleplan.plan import (
    START_DATE,
    ChapterReference,
    get_chapter_for_date,
    get_today_chapter_reference,
    next_reading_time,
)
from bibleplan.provider import BibliaApiProvider, ChapterProvider, ProviderError
from bibleplan.service import (
    BibleService,
    LookupResult,
    fetch_chapter,
    get_verse_text,
    lookup,
)
from bibleplan.verses import ParsedQuery, QueryError, parse_query

__version__ = "0.1.0"

__all__ = [
    # Canon
    "CANON",
    "TOTAL_CHAPTERS",
    "book_code",
    "chapter_count",
    # Book names
    "BookNameResolver",
    "fold_diacritics",
    "resolve_book_name",
    # Reading plan
    "START_DATE",
    "ChapterReference",
    "get_chapter_for_date",
    "get_today_chapter_reference",
    "next_reading_time",
    # Fetching
    "ChapterCache",
    "ChapterContent",
    "ChapterFetcher",
    "ChapterProvider",
    "BibliaApiProvider",
    "ERROR_MARKER",
    "OFFLINE_REFERENCE",
    "FetchError",
    "ProviderError",
    # Verses and queries
    "ParsedQuery",
    "QueryError",
    "parse_query",
    # Service
    "BibleService",
    "LookupResult",
    "fetch_chapter",
    "get_verse_text",
    "lookup",
]
