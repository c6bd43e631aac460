"""Formatting helpers shared by the CLI and interactive mode."""

import textwrap
from typing import List

from rich.table import Table

from .dates import format_duration, format_timestamp
from .ident import short_id
from .models import Publication, ReadingSession

DESCRIPTION_WIDTH = 50
UNKNOWN_DATE = "Unknown date"


def format_progress(book: Publication) -> str:
    """Overall progress bounds of a publication."""
    start = book.start or 0
    end = book.end or 0
    if book.is_time_based:
        return f"{format_duration(start)} - {format_duration(end)}"
    return f"pages {start}-{end}"


def format_bound(value, time_based: bool) -> str:
    value = value or 0
    return format_duration(value) if time_based else f"p.{value}"


def format_session_progress(session: ReadingSession, time_based: bool) -> str:
    start = session.start_value or 0
    end = session.end_value or 0
    if time_based:
        return f"{format_duration(start)} -> {format_duration(end)}"
    return f"pages {start} -> {end}"


def format_session_date(session: ReadingSession) -> str:
    if session.start_date is None:
        return UNKNOWN_DATE
    return format_timestamp(session.start_date)


def type_label(book: Publication) -> str:
    """``book (paperback)`` style label."""
    label = book.publication_type or ""
    if book.book_type:
        label = f"{label} ({book.book_type})" if label else book.book_type
    return label


def wrap_description(text: str, width: int = DESCRIPTION_WIDTH) -> List[str]:
    """Wrap a description, keeping a blank line between paragraphs."""
    lines: List[str] = []
    paragraphs = [p for p in text.split("\n") if p.strip()]
    for i, paragraph in enumerate(paragraphs):
        if i > 0:
            lines.append("")
        lines.extend("  " + line for line in textwrap.wrap(paragraph.strip(), width))
    return lines


def publication_details(book: Publication) -> List[str]:
    """Labelled lines describing one publication."""
    lines = [
        f"ID:        {short_id(book.id)}",
        f"Title:     {book.name or 'Untitled'}",
        f"Author:    {book.author or 'Unknown'}",
        f"Type:      {type_label(book) or 'book'}",
        f"Shelf:     {book.shelf or 'Unknown'}",
    ]
    if book.narrator:
        lines.append(f"Narrator:  {book.narrator}")
    if book.isbn:
        lines.append(f"ISBN:      {book.isbn}")
    if book.publisher:
        lines.append(f"Publisher: {book.publisher}")
    if book.is_time_based:
        lines.append(f"Duration:  {format_duration(book.end or 0)}")
    else:
        lines.append(f"Pages:     {book.start or 0} - {book.end or 0}")
    if book.added is not None:
        lines.append(f"Added:     {format_timestamp(book.added)}")
    lines.append(f"Sessions:  {len(book.sessions)}")

    if book.book_description:
        lines.append("")
        lines.append("Description:")
        lines.extend(wrap_description(book.book_description))
    return lines


def publications_table(publications: List[Publication], title: str = "Books") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Author", style="blue")
    table.add_column("Type", style="magenta")
    table.add_column("Shelf", style="yellow")

    for book in publications:
        table.add_row(
            short_id(book.id),
            book.name or "",
            book.author or "",
            book.publication_type or "",
            book.shelf or "",
        )
    return table


def sessions_table(book: Publication) -> Table:
    time_based = book.is_time_based
    table = Table(title=f"Reading Sessions ({len(book.sessions)})")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Date")
    table.add_column("Start", style="green")
    table.add_column("End", style="green")
    table.add_column("Notes", style="dim")

    for i, session in enumerate(book.sessions, start=1):
        notes = "; ".join(str(n) for n in session.notes or [] if n)
        table.add_row(
            str(i),
            short_id(session.id),
            format_session_date(session),
            format_bound(session.start_value, time_based),
            format_bound(session.end_value, time_based),
            notes,
        )
    return table


def counts_table(counts: dict, label: str, count_label: str = "Count") -> Table:
    table = Table()
    table.add_column(label, style="cyan")
    table.add_column(count_label, style="green", justify="right")
    for key, count in counts.items():
        table.add_row(key, str(count))
    return table
