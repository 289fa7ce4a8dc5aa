"""Verse extraction from chapter text.

Chapter text is parsed into a verse map (verse number -> text) and the
requested verses are pulled out of it:

    >>> extract_verses("[1] a\\n[2] b\\n[3] c", "1,3", "Juan", 1)
    '[1] a\\n[3] c'

Verse maps are built with the first strategy that finds anything:
1. Bracketed: "[n] text" anywhere in the text
2. Numbered lines: "n. text" or "n text" at the start of a line, with
   1 <= n <= 199 so that years inside the prose are not mistaken for
   verse numbers

Verse specs accept "4", "4-7", "1, 3", "1-3, 5" and en/em dashes.
Problems come back as message strings rather than exceptions.

Supported reference query formats (parse_query):
- Whole chapter: "Salmos 23", "Sal 23"
- Single verse: "Juan 3:16"
- Range and lists: "1 Cor 13:4-7", "Fil. 4:6,7", "Gen 1:1–3, 5"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bibleplan.canon import chapter_count, get_book
from bibleplan.fetcher import ERROR_MARKER

if TYPE_CHECKING:
    from bibleplan.books import BookNameResolver
    from bibleplan.fetcher import ChapterFetcher

logger = logging.getLogger(__name__)

FULL_VIEW_NOTICE = "(Vista Completa - No se pudo filtrar versículo)"
MISSING_TEXT_MESSAGE = "Versículo no encontrado."

# Bounds for numbered-line parsing
MIN_LINE_VERSE = 1
MAX_LINE_VERSE = 199

# Ranges in a verse spec are clipped here; no chapter comes close
MAX_VERSE_NUMBER = 999

_BRACKETED = re.compile(r"\[(\d+)\]\s*(.*?)(?=\[\d+\]|\Z)", re.DOTALL)
_NUMBERED_LINE = re.compile(
    r"(?:^|\n)\s*(\d+)[.\s]\s*(.*?)(?=\n\s*\d+[.\s]|\Z)", re.DOTALL
)
_LEADING_INT = re.compile(r"\s*(\d+)")
_DASHES = re.compile(r"[–—]")
_QUERY = re.compile(r"^(.+?)\s+(\d+)(?:\s*:\s*([\d\s,\-–—]+))?$")


class QueryError(ValueError):
    """Error parsing a reference query, with a message fit to show a reader."""

    pass


@dataclass(frozen=True)
class ParsedQuery:
    """A reference query split into its parts."""

    book: str  # Canonical book name
    chapter: int
    verses: str | None = None  # Verse spec, None for the whole chapter

    @property
    def label(self) -> str:
        if self.verses:
            return f"{self.book} {self.chapter}:{self.verses}"
        return f"{self.book} {self.chapter}"


def build_verse_map(text: str) -> dict[int, str]:
    """Parse chapter text into {verse number: verse text}.

    Returns:
        Verse map; empty if neither strategy found a verse
    """
    verse_map: dict[int, str] = {}

    for match in _BRACKETED.finditer(text):
        verse_map[int(match.group(1))] = match.group(2).strip()

    if verse_map:
        return verse_map

    for match in _NUMBERED_LINE.finditer(text):
        number = int(match.group(1))
        if MIN_LINE_VERSE <= number <= MAX_LINE_VERSE:
            verse_map[number] = match.group(2).strip()

    if verse_map:
        logger.debug(f"Parsed {len(verse_map)} verses from numbered lines")
    return verse_map


def _leading_int(value: str) -> int | None:
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def parse_verse_spec(spec: str) -> list[int]:
    """Parse a verse spec into sorted, de-duplicated verse numbers.

    Reversed ranges are reordered ("7-4" == "4-7"). Segments that do not
    start with a number are ignored, so "4, x, 6" gives [4, 6].

    Args:
        spec: Verse spec like "4", "4-7", "1, 3", "1-3, 5"

    Returns:
        Ascending list of verse numbers (possibly empty)
    """
    verses: set[int] = set()

    for part in _DASHES.sub("-", spec).split(","):
        part = part.strip()
        if not part:
            continue

        if "-" in part:
            bounds = part.split("-")
            start = _leading_int(bounds[0])
            end = _leading_int(bounds[1])
            if start is None or end is None:
                continue
            low, high = min(start, end), max(start, end)
            verses.update(range(low, min(high, MAX_VERSE_NUMBER) + 1))
        else:
            number = _leading_int(part)
            if number is not None:
                verses.add(number)

    return sorted(verses)


def extract_verses(text: str, spec: str, book: str, chapter: int) -> str:
    """Pull the verses named by spec out of chapter text.

    Args:
        text: Chapter text
        spec: Verse spec
        book: Book name, used in messages
        chapter: Chapter number, used in messages

    Returns:
        "[n] text" lines in ascending verse order; the full text behind
        FULL_VIEW_NOTICE if the chapter could not be split into verses;
        or a not-found message
    """
    verse_map = build_verse_map(text)

    if not verse_map:
        logger.warning(f"Could not split {book} {chapter} into verses")
        return f"{FULL_VIEW_NOTICE}\n\n{text}"

    wanted = parse_verse_spec(spec)
    if not wanted:
        return f"No se encontraron versículos válidos en la referencia: {spec}."

    lines = [f"[{n}] {verse_map[n]}" for n in wanted if n in verse_map]
    result = "\n".join(lines).strip()

    return result or f"Los versículos {spec} no se encontraron en {book} {chapter}."


async def get_verse_text(
    fetcher: "ChapterFetcher", book: str, chapter: int, spec: str
) -> str:
    """Fetch a chapter and extract verses from it.

    Error content from the fetcher is returned unchanged.

    Args:
        fetcher: Chapter fetcher to read through
        book: Book name or abbreviation
        chapter: Chapter number
        spec: Verse spec

    Returns:
        Extracted verses or a message string; never raises for missing
        data or provider failures
    """
    resolved = fetcher.resolver.resolve(book)
    logger.debug(f"Getting verses for: {resolved} {chapter}:{spec} (raw: {book})")

    content = await fetcher.fetch_chapter(resolved, chapter)
    if not content.ok or content.text.startswith(ERROR_MARKER):
        return content.text
    if not content.text:
        return MISSING_TEXT_MESSAGE

    return extract_verses(content.text, spec, resolved, chapter)


def parse_query(query: str, resolver: "BookNameResolver | None" = None) -> ParsedQuery:
    """Parse a reference query like "Juan 3:16" or "Salmos 23".

    Args:
        query: Reference typed by a reader
        resolver: Book name resolver (default tables if omitted)

    Returns:
        ParsedQuery with a canonical book name

    Raises:
        QueryError: If the query is malformed, the book is unknown or
            the chapter does not exist
    """
    if resolver is None:
        from bibleplan.books import BookNameResolver

        resolver = BookNameResolver()

    cleaned = query.strip()
    if not cleaned:
        raise QueryError("Referencia vacía. Ejemplo: 'Juan 3:16' o 'Salmos 23'.")

    match = _QUERY.match(cleaned)
    if not match:
        raise QueryError(
            f"Formato no reconocido: '{cleaned}'. "
            "Usa 'Libro Capítulo' o 'Libro Capítulo:Versos' "
            "(ej. 'Juan 3:16', 'Gen 1:1-5')."
        )

    book_raw, chapter_str, verses = match.groups()
    book = resolver.resolve(book_raw)

    if get_book(book) is None:
        raise QueryError(f"El libro '{book_raw.strip()}' no fue encontrado.")

    chapter = int(chapter_str)
    if not 1 <= chapter <= chapter_count(book):
        raise QueryError(
            f"El capítulo {chapter} no existe en {book} "
            f"(tiene {chapter_count(book)})."
        )

    if verses is not None:
        verses = verses.strip()

    return ParsedQuery(book=book, chapter=chapter, verses=verses or None)
