"""Reading plan: one chapter per day, walking the canon from a start date.

Day 0 (the start date) is Genesis 1, day 1 is Genesis 2, and so on
through Apocalipsis 22, after which the plan starts over at Genesis 1.
Dates before the start date show the first chapter as a preview.

Everything here is pure and synchronous.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from bibleplan.canon import CANON, BookEntry, book_index

logger = logging.getLogger(__name__)

# Launch date of the plan (Genesis 1)
START_DATE = date(2026, 1, 1)


@dataclass(frozen=True)
class ChapterReference:
    """A (book, chapter) pair with the book in canonical form."""

    book: str
    chapter: int

    def __str__(self) -> str:
        return f"{self.book} {self.chapter}"


def _calendar_day(value: date | datetime) -> date:
    """Reduce a date or datetime to its calendar day.

    A datetime keeps the calendar day of its own clock (naive or aware);
    the time of day never moves the reading.
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def _total_chapters(table: Sequence[BookEntry]) -> int:
    total = sum(entry.chapters for entry in table)
    if total <= 0:
        raise ValueError("Book table must contain at least one chapter")
    return total


def chapter_for_offset(
    days: int, table: Sequence[BookEntry] = CANON
) -> ChapterReference:
    """Map a day offset into the plan to its chapter.

    The offset wraps around the whole table, so the result is periodic
    with a period of the table's total chapter count.

    Args:
        days: Days since the start of the plan (0 = first chapter)
        table: Ordered book table

    Returns:
        ChapterReference for that day
    """
    counter = days % _total_chapters(table)

    for entry in table:
        if counter < entry.chapters:
            break
        counter -= entry.chapters

    return ChapterReference(book=entry.name, chapter=counter + 1)


def get_chapter_for_date(
    day: date | datetime,
    start_date: date | datetime = START_DATE,
    table: Sequence[BookEntry] = CANON,
) -> ChapterReference:
    """Return the chapter scheduled for a calendar day.

    Args:
        day: The day to look up (a datetime's time part is ignored)
        start_date: Day the plan begins at the first chapter
        table: Ordered book table

    Returns:
        ChapterReference; the first chapter of the table for days before
        start_date.
    """
    days_diff = (_calendar_day(day) - _calendar_day(start_date)).days

    if days_diff < 0:
        logger.debug(
            f"{day} is before start date {start_date}, showing first book preview"
        )
        return ChapterReference(book=table[0].name, chapter=1)

    return chapter_for_offset(days_diff, table)


def get_today_chapter_reference(
    today: date | datetime | None = None,
    start_date: date | datetime = START_DATE,
) -> ChapterReference:
    """Return today's chapter (or the chapter for `today` when given)."""
    if today is None:
        today = date.today()
    return get_chapter_for_date(today, start_date)


def next_reading_time(now: datetime | None = None) -> datetime:
    """Return when the next reading unlocks: the next midnight after `now`.

    The timezone of `now` is kept, so an aware datetime yields the next
    midnight in that zone.
    """
    if now is None:
        now = datetime.now()
    tomorrow = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time(0, 0), tzinfo=now.tzinfo)


def next_chapter(
    ref: ChapterReference, table: Sequence[BookEntry] = CANON
) -> ChapterReference:
    """Return the chapter after ref, crossing book boundaries.

    Genesis 50 -> Exodo 1; the last chapter of the table wraps to the first.

    Raises:
        ValueError: If ref.book is not in the table
    """
    i = _position(ref, table)
    if ref.chapter < table[i].chapters:
        return ChapterReference(book=ref.book, chapter=ref.chapter + 1)
    following = table[(i + 1) % len(table)]
    return ChapterReference(book=following.name, chapter=1)


def previous_chapter(
    ref: ChapterReference, table: Sequence[BookEntry] = CANON
) -> ChapterReference:
    """Return the chapter before ref, crossing book boundaries.

    Exodo 1 -> Genesis 50; the first chapter of the table wraps to the last.

    Raises:
        ValueError: If ref.book is not in the table
    """
    i = _position(ref, table)
    if ref.chapter > 1:
        return ChapterReference(book=ref.book, chapter=ref.chapter - 1)
    preceding = table[(i - 1) % len(table)]
    return ChapterReference(book=preceding.name, chapter=preceding.chapters)


def _position(ref: ChapterReference, table: Sequence[BookEntry]) -> int:
    if table is CANON:
        i = book_index(ref.book)
    else:
        i = next((n for n, e in enumerate(table) if e.name == ref.book), None)
    if i is None:
        raise ValueError(f"Unknown book: '{ref.book}'")
    return i


def build_reading_plan(
    year: int,
    start_date: date | datetime = START_DATE,
    table: Sequence[BookEntry] = CANON,
) -> dict[str, ChapterReference]:
    """Build the day-by-day plan for a calendar year.

    Args:
        year: Calendar year to tabulate
        start_date: Day the plan begins at the first chapter
        table: Ordered book table

    Returns:
        Ordered dict keyed "MM-DD" covering every day of the year
    """
    plan: dict[str, ChapterReference] = {}
    day = date(year, 1, 1)
    while day.year == year:
        plan[day.strftime("%m-%d")] = get_chapter_for_date(day, start_date, table)
        day += timedelta(days=1)
    return plan
