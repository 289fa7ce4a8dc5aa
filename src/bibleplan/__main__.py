"""CLI entry point for the Bible plan engine."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import date, datetime

import click
from rich.console import Console
from rich.panel import Panel
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from bibleplan import __version__
from bibleplan.books import resolve_book_name
from bibleplan.canon import book_code, get_book
from bibleplan.config import Settings, load_settings
from bibleplan.plan import build_reading_plan, get_chapter_for_date, next_reading_time
from bibleplan.service import BibleService

console = Console()


def build_service(settings: Settings) -> BibleService:
    """Create the service used by network commands."""
    return BibleService(settings)


async def _with_service(settings: Settings, action):
    async with build_service(settings) as service:
        return await action(service)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level",
)
@click.option("--config", "config_path", type=click.Path(), help="Config file path")
@click.pass_context
def cli(ctx: click.Context, log_level: str, config_path: str | None):
    """Bible reading plan - daily chapters, book names and verse lookup."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = load_settings(config_path)
    except ValueError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(2)


@cli.command()
@click.option(
    "--date",
    "on_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to look up (default: today)",
)
@click.pass_obj
def today(settings: Settings, on_date: datetime | None):
    """Show the reading plan chapter for a day."""
    day = on_date.date() if on_date else date.today()
    ref = get_chapter_for_date(day, settings.start_date)

    console.print(f"[bold]{day.isoformat()}[/bold]: [green]{ref}[/green]")
    if on_date is None:
        next_time = next_reading_time()
        console.print(f"[dim]Next reading at {next_time:%Y-%m-%d %H:%M}[/dim]")


@cli.command()
@click.argument("name")
def resolve(name: str):
    """Resolve a book name or abbreviation.

    Example: bibleplan resolve "Fil."
    """
    resolved = resolve_book_name(name)
    if get_book(resolved) is None:
        guess = escape(repr(resolved))
        console.print(
            f"[yellow]Unknown book: {escape(repr(name))} (best guess: {guess})[/yellow]"
        )
        sys.exit(1)

    console.print(f"[green]{resolved}[/green] [dim]({book_code(resolved)})[/dim]")


@cli.command()
@click.argument("book")
@click.argument("chapter_number", metavar="CHAPTER", type=int)
@click.pass_obj
def chapter(settings: Settings, book: str, chapter_number: int):
    """Fetch and print a whole chapter.

    Example: bibleplan chapter Juan 3
    """
    content = asyncio.run(
        _with_service(settings, lambda s: s.fetch_chapter(book, chapter_number))
    )

    if not content.ok:
        console.print(Text(content.text, style="red"))
        sys.exit(1)

    console.print(Panel(Text(content.text), title=content.reference))


@cli.command()
@click.argument("book")
@click.argument("chapter_number", metavar="CHAPTER", type=int)
@click.argument("spec")
@click.pass_obj
def verses(settings: Settings, book: str, chapter_number: int, spec: str):
    """Print selected verses of a chapter.

    Example: bibleplan verses "1 Cor" 13 4-7
    """
    text = asyncio.run(
        _with_service(
            settings, lambda s: s.get_verse_text(book, chapter_number, spec)
        )
    )
    resolved = resolve_book_name(book)
    console.print(Panel(Text(text), title=f"{resolved} {chapter_number}:{spec}"))


@cli.command()
@click.argument("query")
@click.pass_obj
def lookup(settings: Settings, query: str):
    """Look up a reference like "Juan 3:16" or "Salmos 23"."""
    result = asyncio.run(_with_service(settings, lambda s: s.lookup(query)))

    if not result.ok:
        console.print(Text(result.text, style="red"))
        sys.exit(1)

    console.print(Panel(Text(result.text), title=result.reference))


@cli.command()
@click.argument("year", type=int)
@click.option("--month", "-m", type=click.IntRange(1, 12), help="Only this month")
@click.pass_obj
def plan(settings: Settings, year: int, month: int | None):
    """Show the reading plan for a year."""
    schedule = build_reading_plan(year, settings.start_date)

    table = Table(title=f"Reading plan {year}")
    table.add_column("Day", style="cyan")
    table.add_column("Chapter", style="green")

    for key, ref in schedule.items():
        if month is not None and int(key[:2]) != month:
            continue
        table.add_row(key, str(ref))

    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
