"""
Interactive menu mode.

Every step receives the current Backup and returns the Backup the next
step should work with; nothing is kept in module state. Errors from a
single action are reported and the menu carries on.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from .display import publication_details, sessions_table
from .errors import BookshelfError
from .ident import short_id
from .models import Backup, Publication
from .parse import parse_duration, parse_page_number, parse_page_range
from .services import PublicationService, QueryService, SessionService
from .services.publication_service import AUDIOBOOK, DEFAULT_SHELF
from .storage import load_backup

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACK = "__back__"

BOOK_FORMATS = [("paperback", "Paperback"), ("hardcover", "Hardcover"), ("ebook", "E-book")]
PUBLICATION_TYPES = [("book", "Book"), ("audiobook", "Audiobook")]


def print_block(console: Console, title: str, lines: Sequence[str]) -> None:
    console.print(Panel("\n".join(escape(line) for line in lines), title=title, title_align="left"))


def choose(console: Console, message: str, options: List[Tuple[T, str]]) -> Optional[T]:
    """
    Show a numbered menu and return the chosen value.

    Returns None when input ends (Ctrl-D).
    """
    console.print(f"\n[bold]{escape(message)}[/bold]")
    for i, (_, label) in enumerate(options, start=1):
        console.print(f"  {i}. {escape(label)}")
    try:
        answer = Prompt.ask(
            "Choose", choices=[str(i) for i in range(1, len(options) + 1)], console=console
        )
    except EOFError:
        return None
    return options[int(answer) - 1][0]


def ask_text(console: Console, message: str, default: str = "", required: bool = False,
             check: Optional[Callable[[str], bool]] = None, hint: str = "") -> Optional[str]:
    """
    Prompt for a line of text.

    Re-prompts while the answer is empty (when required) or fails ``check``.
    Returns None when input ends.
    """
    while True:
        try:
            answer = Prompt.ask(escape(message), default=default, show_default=bool(default),
                                console=console)
        except EOFError:
            return None
        answer = (answer or "").strip()
        if required and not answer:
            console.print("[red]A value is required[/red]")
            continue
        if answer and check is not None and not check(answer):
            console.print(f"[red]Invalid value. {escape(hint)}[/red]")
            continue
        return answer


def _attempt(console: Console, action: Callable[[], T]) -> Optional[T]:
    """Run one service call, reporting failures instead of leaving the menu."""
    try:
        return action()
    except BookshelfError as e:
        logger.debug(f"Interactive action failed: {e}")
        console.print(f"[bold red]✗[/bold red] {escape(str(e))}")
        return None


def run(path: Path, console: Optional[Console] = None) -> Backup:
    """
    Start interactive mode on a backup file.

    Raises:
        LoadError: The backup cannot be loaded
    """
    console = console or Console()
    console.print(Panel("Bookshelf - Interactive Mode", style="bold cyan"))

    backup = load_backup(path)
    backup = main_menu(backup, path, console)

    console.print("Goodbye!")
    return backup


def main_menu(backup: Backup, path: Path, console: Console) -> Backup:
    while True:
        action = choose(console, "What would you like to do?", [
            ("browse", f"Browse books ({len(backup.publications)})"),
            ("add", "Add a book"),
            ("stats", "View statistics"),
            ("exit", "Exit"),
        ])

        if action in (None, "exit"):
            return backup
        if action == "browse":
            backup = browse_books(backup, path, console)
        elif action == "add":
            backup = add_book(backup, path, console)
        elif action == "stats":
            view_stats(backup, console)


def browse_books(backup: Backup, path: Path, console: Console) -> Backup:
    if not backup.publications:
        print_block(console, "INFO", ["No books in your library yet.", "Add one from the main menu!"])
        return backup

    options = [
        (index, f"{book.name or 'Untitled'}  ({book.author or 'Unknown author'} - {book.shelf or 'No shelf'})")
        for index, book in enumerate(backup.publications)
    ]
    options.append((BACK, "Back to main menu"))

    selected = choose(console, "Select a book:", options)
    if selected in (None, BACK):
        return backup

    return book_menu(backup, backup.publications[selected], path, console)


def book_menu(backup: Backup, book: Publication, path: Path, console: Console) -> Backup:
    while True:
        action = choose(console, book.name or "Untitled", [
            ("view", "View details"),
            ("edit", "Edit book"),
            ("sessions", f"View sessions ({len(book.sessions)})"),
            ("add-session", "Add reading session"),
            ("edit-session", "Edit reading session"),
            ("delete-session", "Delete reading session"),
            ("delete", "Delete book"),
            ("back", "Back to book list"),
        ])

        if action in (None, "back"):
            return backup
        if action == "view":
            print_block(console, "BOOK DETAILS", publication_details(book))
        elif action == "edit":
            backup = edit_book(backup, book, path, console)
        elif action == "sessions":
            view_sessions(book, console)
        elif action == "add-session":
            backup = add_session(backup, book, path, console)
        elif action == "edit-session":
            backup = edit_session(backup, book, path, console)
        elif action == "delete-session":
            backup = delete_session(backup, book, path, console)
        elif action == "delete":
            backup, deleted = delete_book(backup, book, path, console)
            if deleted:
                return backup


def add_book(backup: Backup, path: Path, console: Console) -> Backup:
    name = ask_text(console, "Book title", required=True)
    if name is None:
        return backup
    author = ask_text(console, "Author")
    if author is None:
        return backup

    publication_type = choose(console, "Publication type:", PUBLICATION_TYPES)
    if publication_type is None:
        return backup

    book_type = None
    if publication_type != AUDIOBOOK:
        book_type = choose(console, "Book format:", BOOK_FORMATS + [("", "Skip")])
        if book_type is None:
            return backup

    shelf = ask_text(console, "Shelf", default=DEFAULT_SHELF)
    if shelf is None:
        return backup

    pages = duration = narrator = None
    if publication_type == AUDIOBOOK:
        duration = ask_text(console, "Duration (e.g. 10h30m or 37800, empty to skip)",
                            check=lambda v: parse_duration(v) is not None,
                            hint="Use: 3600 or 1h30m")
        if duration is None:
            return backup
        narrator = ask_text(console, "Narrator (empty to skip)")
        if narrator is None:
            return backup
    else:
        pages = ask_text(console, "Page range (e.g. 1-350, empty to skip)",
                         check=lambda v: parse_page_range(v) is not None,
                         hint="Use: 1-350")
        if pages is None:
            return backup

    service = PublicationService(backup, path)
    book = _attempt(console, lambda: service.add(
        name,
        author=author,
        publication_type=publication_type,
        book_type=book_type,
        shelf=shelf,
        narrator=narrator,
        pages=pages,
        duration=duration,
    ))
    if book is not None:
        console.print(f"[green]✓ Added \"{escape(book.name)}\" (ID: {short_id(book.id)})[/green]")
    return service.backup


def edit_book(backup: Backup, book: Publication, path: Path, console: Console) -> Backup:
    progress_label = "Duration" if book.is_time_based else "Page range"
    field_name = choose(console, "Which field to edit?", [
        ("name", f"Title: {book.name or 'Untitled'}"),
        ("author", f"Author: {book.author or 'Unknown'}"),
        ("shelf", f"Shelf: {book.shelf or 'Unknown'}"),
        ("type", f"Type: {book.publication_type or 'book'}"),
        ("book_type", f"Book Format: {book.book_type or 'Not set'}"),
        ("narrator", f"Narrator: {book.narrator or 'Not set'}"),
        ("isbn", f"ISBN: {book.isbn or 'Not set'}"),
        ("publisher", f"Publisher: {book.publisher or 'Not set'}"),
        ("progress", progress_label),
        ("description", "Description"),
        (BACK, "Cancel"),
    ])
    if field_name in (None, BACK):
        return backup

    changes = {}
    if field_name == "type":
        value = choose(console, "New publication type:", PUBLICATION_TYPES)
        if value is None:
            return backup
        changes["type"] = value
    elif field_name == "book_type":
        value = choose(console, "New book format:", BOOK_FORMATS + [("", "Clear (remove value)")])
        if value is None:
            return backup
        changes["book_type"] = value
    elif field_name == "progress":
        if book.is_time_based:
            value = ask_text(console, "New duration (e.g. 10h30m or seconds)",
                             default=str(int(book.end or 0)), required=True)
            changes["duration"] = value
        else:
            value = ask_text(console, "New page range (e.g. 1-350)",
                             default=f"{book.start or 0}-{book.end or 0}", required=True)
            changes["pages"] = value
        if value is None:
            return backup
    else:
        current = getattr(book, Publication.EDITABLE[field_name]) or ""
        value = ask_text(console, f"New {field_name.replace('_', ' ')} (empty to clear)",
                         default=current, required=field_name == "name")
        if value is None:
            return backup
        changes[field_name] = value

    service = PublicationService(backup, path)
    if _attempt(console, lambda: service.edit(book.id, **changes)) is not None:
        console.print("[green]✓ Changes saved[/green]")
    return service.backup


def view_sessions(book: Publication, console: Console) -> None:
    if not book.sessions:
        print_block(console, "READING SESSIONS", ["No reading sessions recorded for this book."])
        return
    console.print(sessions_table(book))


def _choose_session(book: Publication, console: Console, message: str) -> Optional[str]:
    if not book.sessions:
        console.print("[yellow]No reading sessions recorded for this book.[/yellow]")
        return None
    view_sessions(book, console)
    options = [(s.id, f"{short_id(s.id)}  {s.start_value or 0} -> {s.end_value or 0}") for s in book.sessions]
    options.append((BACK, "Cancel"))
    selected = choose(console, message, options)
    return None if selected in (None, BACK) else selected


def _bound_prompt(book: Publication, which: str) -> Tuple[str, Callable[[str], bool], str]:
    if book.is_time_based:
        return (f"{which} time (e.g. 1h30m or 5400)",
                lambda v: parse_duration(v) is not None, "Use: 5400 or 1h30m")
    return (f"{which} page", lambda v: parse_page_number(v) is not None, "Use a whole number")


def _bound_default(value) -> str:
    """Prompt default for a stored bound: a whole number, or empty when unset."""
    return "" if value is None else str(int(value))


def _changed(answer: str, default: str) -> Optional[str]:
    return None if answer == default else answer


def add_session(backup: Backup, book: Publication, path: Path, console: Console) -> Backup:
    message, check, hint = _bound_prompt(book, "Starting")
    start = ask_text(console, message, required=True, check=check, hint=hint)
    if start is None:
        return backup
    message, check, hint = _bound_prompt(book, "Ending")
    end = ask_text(console, message, required=True, check=check, hint=hint)
    if end is None:
        return backup
    notes = ask_text(console, "Notes (optional)")
    if notes is None:
        return backup

    service = SessionService(backup, path)
    result = _attempt(console, lambda: service.add(book.id, start=start, end=end, notes=notes))
    if result is not None:
        _, session = result
        label = "time" if book.is_time_based else "pages"
        console.print(f"[green]✓ Added session ({label} {session.start_value} -> {session.end_value})[/green]")
    return service.backup


def edit_session(backup: Backup, book: Publication, path: Path, console: Console) -> Backup:
    session_id = _choose_session(book, console, "Which session to edit?")
    if session_id is None:
        return backup

    session = next(s for s in book.sessions if s.id == session_id)

    # Answers left at their default are passed as None so the stored value is kept
    start_default = _bound_default(session.start_value)
    message, check, hint = _bound_prompt(book, "Starting")
    start = ask_text(console, message, default=start_default, check=check, hint=hint)
    if start is None:
        return backup
    end_default = _bound_default(session.end_value)
    message, check, hint = _bound_prompt(book, "Ending")
    end = ask_text(console, message, default=end_default, check=check, hint=hint)
    if end is None:
        return backup
    current_note = str(session.notes[0]) if session.has_note else ""
    notes = ask_text(console, "Notes", default=current_note)
    if notes is None:
        return backup

    changes = {
        "start": _changed(start, start_default),
        "end": _changed(end, end_default),
        "notes": _changed(notes, current_note),
    }
    service = SessionService(backup, path)
    if _attempt(console, lambda: service.edit(session_id, **changes)) is not None:
        console.print("[green]✓ Session updated[/green]")
    return service.backup


def delete_session(backup: Backup, book: Publication, path: Path, console: Console) -> Backup:
    session_id = _choose_session(book, console, "Which session to delete?")
    if session_id is None:
        return backup

    service = SessionService(backup, path)
    result = _attempt(console, lambda: service.delete(
        session_id, confirm=lambda message: Confirm.ask(escape(message), console=console)
    ))
    if result is not None:
        console.print("[green]✓ Session deleted[/green]")
    return service.backup


def delete_book(backup: Backup, book: Publication, path: Path, console: Console) -> Tuple[Backup, bool]:
    service = PublicationService(backup, path)
    deleted = _attempt(console, lambda: service.delete(
        book.id, confirm=lambda message: Confirm.ask(escape(message), console=console)
    ))
    if deleted is None:
        return service.backup, False
    console.print(f"[green]✓ Deleted \"{escape(deleted.name or '')}\"[/green]")
    return service.backup, True


def view_stats(backup: Backup, console: Console) -> None:
    stats = QueryService(backup).stats()
    lines = [
        f"Total publications:     {stats['total']}",
        f"Total reading sessions: {stats['totalSessions']}",
        "",
        "By type:",
    ]
    lines.extend(f"  {name}: {count}" for name, count in stats["byType"].items())
    lines.append("")
    lines.append("By shelf:")
    lines.extend(f"  {name}: {count}" for name, count in stats["byShelf"].items())
    print_block(console, "LIBRARY STATISTICS", lines)
