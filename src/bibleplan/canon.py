"""Canon book table for the reading plan.

The 66 books in traditional order, with their chapter counts and the
three-letter codes used by scripture APIs (OSIS-style, e.g. "GEN", "1CO").

Order is fixed: the reading plan walks this table front to back, so
reordering it would shift every date in the plan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bibleplan.plan import ChapterReference


@dataclass(frozen=True)
class BookEntry:
    """One book of the canon."""

    name: str  # Canonical (unaccented) Spanish name
    chapters: int
    code: str  # API book code


CANON: tuple[BookEntry, ...] = (
    # Old Testament
    BookEntry("Genesis", 50, "GEN"),
    BookEntry("Exodo", 40, "EXO"),
    BookEntry("Levitico", 27, "LEV"),
    BookEntry("Numeros", 36, "NUM"),
    BookEntry("Deuteronomio", 34, "DEU"),
    BookEntry("Josue", 24, "JOS"),
    BookEntry("Jueces", 21, "JDG"),
    BookEntry("Rut", 4, "RUT"),
    BookEntry("1 Samuel", 31, "1SA"),
    BookEntry("2 Samuel", 24, "2SA"),
    BookEntry("1 Reyes", 22, "1KI"),
    BookEntry("2 Reyes", 25, "2KI"),
    BookEntry("1 Cronicas", 29, "1CH"),
    BookEntry("2 Cronicas", 36, "2CH"),
    BookEntry("Esdras", 10, "EZR"),
    BookEntry("Nehemias", 13, "NEH"),
    BookEntry("Ester", 10, "EST"),
    BookEntry("Job", 42, "JOB"),
    BookEntry("Salmos", 150, "PSA"),
    BookEntry("Proverbios", 31, "PRO"),
    BookEntry("Eclesiastes", 12, "ECC"),
    BookEntry("Cantares", 8, "SNG"),
    BookEntry("Isaias", 66, "ISA"),
    BookEntry("Jeremias", 52, "JER"),
    BookEntry("Lamentaciones", 5, "LAM"),
    BookEntry("Ezequiel", 48, "EZK"),
    BookEntry("Daniel", 12, "DAN"),
    BookEntry("Oseas", 14, "HOS"),
    BookEntry("Joel", 3, "JOL"),
    BookEntry("Amos", 9, "AMO"),
    BookEntry("Abdias", 1, "OBA"),
    BookEntry("Jonas", 4, "JON"),
    BookEntry("Miqueas", 7, "MIC"),
    BookEntry("Nahum", 3, "NAM"),
    BookEntry("Habacuc", 3, "HAB"),
    BookEntry("Sofonias", 3, "ZEP"),
    BookEntry("Hageo", 2, "HAG"),
    BookEntry("Zacarias", 14, "ZEC"),
    BookEntry("Malaquias", 4, "MAL"),
    # New Testament
    BookEntry("Mateo", 28, "MAT"),
    BookEntry("Marcos", 16, "MRK"),
    BookEntry("Lucas", 24, "LUK"),
    BookEntry("Juan", 21, "JHN"),
    BookEntry("Hechos", 28, "ACT"),
    BookEntry("Romanos", 16, "ROM"),
    BookEntry("1 Corintios", 16, "1CO"),
    BookEntry("2 Corintios", 13, "2CO"),
    BookEntry("Galatas", 6, "GAL"),
    BookEntry("Efesios", 6, "EPH"),
    BookEntry("Filipenses", 4, "PHP"),
    BookEntry("Colosenses", 4, "COL"),
    BookEntry("1 Tesalonicenses", 5, "1TH"),
    BookEntry("2 Tesalonicenses", 3, "2TH"),
    BookEntry("1 Timoteo", 6, "1TI"),
    BookEntry("2 Timoteo", 4, "2TI"),
    BookEntry("Tito", 3, "TIT"),
    BookEntry("Filemon", 1, "PHM"),
    BookEntry("Hebreos", 13, "HEB"),
    BookEntry("Santiago", 5, "JAS"),
    BookEntry("1 Pedro", 5, "1PE"),
    BookEntry("2 Pedro", 3, "2PE"),
    BookEntry("1 Juan", 5, "1JN"),
    BookEntry("2 Juan", 1, "2JN"),
    BookEntry("3 Juan", 1, "3JN"),
    BookEntry("Judas", 1, "JUD"),
    BookEntry("Apocalipsis", 22, "REV"),
)

BOOK_NAMES: list[str] = [entry.name for entry in CANON]

TOTAL_CHAPTERS: int = sum(entry.chapters for entry in CANON)

_BY_NAME: dict[str, BookEntry] = {entry.name: entry for entry in CANON}
_INDEX: dict[str, int] = {entry.name: i for i, entry in enumerate(CANON)}


def get_book(name: str) -> BookEntry | None:
    """Return the canon entry for an exact canonical name."""
    return _BY_NAME.get(name)


def book_index(name: str) -> int | None:
    """Return the 0-based canon position of a canonical book name."""
    return _INDEX.get(name)


def chapter_count(name: str) -> int:
    """Return the number of chapters in a canonical book, or 0 if unknown."""
    entry = _BY_NAME.get(name)
    return entry.chapters if entry else 0


def book_code(name: str) -> str | None:
    """Return the API book code for a book name or abbreviation.

    The name is resolved through the book name resolver first, so
    "Fil.", "flp" and "Filipenses" all map to "PHP".

    Returns:
        Three-character code, or None if the name does not resolve to a
        canonical book.
    """
    from bibleplan.books import resolve_book_name

    entry = _BY_NAME.get(resolve_book_name(name))
    return entry.code if entry else None


def is_valid_reference(ref: "ChapterReference") -> bool:
    """True if the reference names a canonical book and an existing chapter."""
    return 1 <= ref.chapter <= chapter_count(ref.book)
