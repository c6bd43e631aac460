import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Prompt
from rich.traceback import install

from .config import load_config
from .decorators import handle_bookshelf_errors
from .display import (
    counts_table,
    format_progress,
    format_session_date,
    format_session_progress,
    publication_details,
    publications_table,
    sessions_table,
)
from .ident import short_id
from .services import (
    ImportService,
    PublicationService,
    QueryService,
    SessionService,
    is_affirmative,
)
from .storage import get_file_path, load_backup

# Initialize Rich Traceback for better error messages
install(show_locals=False)

console = Console()

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Manage Pocketshelf book library backups")

list_app = typer.Typer(help="List items from the library")
show_app = typer.Typer(help="Show detailed information")
add_app = typer.Typer(help="Add books or reading sessions")
edit_app = typer.Typer(help="Edit books or reading sessions")
delete_app = typer.Typer(help="Delete books or reading sessions")

app.add_typer(list_app, name="list")
app.add_typer(show_app, name="show")
app.add_typer(add_app, name="add")
app.add_typer(edit_app, name="edit")
app.add_typer(delete_app, name="delete")


@dataclass
class CLIState:
    """Global options shared by every command."""
    file: Optional[Path] = None
    json_output: bool = False


def emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def ask_confirmation(message: str) -> bool:
    answer = Prompt.ask(f"{escape(message)} (y/N)", default="", show_default=False, console=console)
    return is_affirmative(answer)


@app.callback()
def main(
    ctx: typer.Context,
    file: Optional[Path] = typer.Option(
        None, "--file", "-f",
        help="Backup file path (default: $BOOKSHELF_FILE, then library.default_file from the config, then ./file)",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
):
    """
    bookshelf - inspect and edit a Pocketshelf library backup.

    Books and audiobooks can be listed, filtered, added, edited and deleted,
    along with their reading sessions. Ids may be shortened to any unique
    prefix.
    """
    config = load_config()
    if verbose or config.cli.verbose:
        logging.getLogger("bookshelf").setLevel(logging.DEBUG)
        logger.debug("Verbose mode enabled")
    if not config.cli.color:
        console.no_color = True

    ctx.obj = CLIState(file=file, json_output=json_output)


# ============================================================================
# Read-only commands
# ============================================================================

@app.command()
@handle_bookshelf_errors
def info(ctx: typer.Context):
    """Show backup file metadata."""
    state: CLIState = ctx.obj
    path = get_file_path(state.file)
    data = QueryService(load_backup(path)).info(path)

    if state.json_output:
        emit_json(data)
        return

    console.print(f"File: {escape(data['file'])}")
    console.print(f"App Version: {escape(data['appVersion'])}")
    console.print(f"Publications: {data['publicationCount']}")


@list_app.command(name="books")
@handle_bookshelf_errors
def list_books(
    ctx: typer.Context,
    shelf: Optional[str] = typer.Option(None, "--shelf", "-s", help="Filter by shelf"),
    publication_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by type (book/audiobook)"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Filter by author (partial match)"),
    where: Optional[str] = typer.Option(None, "--where", "-w", help="JMESPath filter, e.g. \"end > `300`\""),
):
    """
    List all publications, optionally filtered.

    Examples:
        bookshelf list books --shelf "To Read"
        bookshelf list books --type audiobook --author herbert
        bookshelf list books --where "progressMeasurementType == 'time'"
    """
    state: CLIState = ctx.obj
    backup = load_backup(state.file)
    books = QueryService(backup).filter_publications(
        shelf=shelf, publication_type=publication_type, author=author, where=where
    )

    if state.json_output:
        emit_json([b.to_dict() for b in books])
        return

    if not books:
        console.print("[yellow]No books found.[/yellow]")
        return

    console.print(publications_table(books))
    console.print(f"\n[dim]Showing {len(books)} of {len(backup.publications)} books[/dim]")


@list_app.command(name="shelves")
@handle_bookshelf_errors
def list_shelves(ctx: typer.Context):
    """List all shelves with book counts."""
    state: CLIState = ctx.obj
    shelves = QueryService(load_backup(state.file)).shelf_counts()

    if state.json_output:
        emit_json(shelves)
        return

    if not shelves:
        console.print("[yellow]No shelves found.[/yellow]")
        return
    console.print(counts_table(shelves, "Shelf"))


@list_app.command(name="authors")
@handle_bookshelf_errors
def list_authors(ctx: typer.Context):
    """List all authors with book counts."""
    state: CLIState = ctx.obj
    authors = QueryService(load_backup(state.file)).author_counts()

    if state.json_output:
        emit_json(authors)
        return

    if not authors:
        console.print("[yellow]No authors found.[/yellow]")
        return
    console.print(counts_table(authors, "Author", "Books"))


@show_app.command(name="book")
@handle_bookshelf_errors
def show_book(
    ctx: typer.Context,
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
):
    """Show detailed info for a specific book."""
    state: CLIState = ctx.obj
    book = PublicationService(load_backup(state.file)).get(book_id)

    if state.json_output:
        emit_json(book.to_dict())
        return

    for line in publication_details(book):
        console.print(escape(line))
    console.print(f"Progress:  {format_progress(book)}")

    console.print()
    if book.sessions:
        console.print(sessions_table(book))
    else:
        console.print("[dim]No sessions recorded.[/dim]")


@show_app.command(name="sessions")
@handle_bookshelf_errors
def show_sessions(
    ctx: typer.Context,
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
):
    """Show reading sessions for a book."""
    state: CLIState = ctx.obj
    book = PublicationService(load_backup(state.file)).get(book_id)

    if state.json_output:
        emit_json([s.to_dict() for s in book.sessions])
        return

    console.print(f"Sessions for: {escape(book.name or '')} ({short_id(book.id)})\n")
    if not book.sessions:
        console.print("No sessions recorded.")
        return

    for i, session in enumerate(book.sessions, start=1):
        console.print(f"#{i}")
        console.print(f"  ID: {short_id(session.id)}")
        console.print(f"  Date: {format_session_date(session)}")
        console.print(f"  Progress: {format_session_progress(session, book.is_time_based)}")
        if session.notes:
            console.print(f"  Notes: {escape(json.dumps(session.notes, ensure_ascii=False))}")
        console.print()


@app.command()
@handle_bookshelf_errors
def stats(ctx: typer.Context):
    """Show library statistics."""
    state: CLIState = ctx.obj
    data = QueryService(load_backup(state.file)).stats()

    if state.json_output:
        emit_json(data)
        return

    console.print(f"Total publications: {data['total']}")
    console.print(f"Total reading sessions: {data['totalSessions']}")
    for publication_type, count in data["byType"].items():
        console.print(f"  {escape(publication_type)}: {count}")

    console.print("\n[bold]By shelf:[/bold]")
    for shelf, count in data["byShelf"].items():
        console.print(f"  {escape(shelf)}: {count}")


# ============================================================================
# Mutating commands
# ============================================================================

@add_app.command(name="book")
@handle_bookshelf_errors
def add_book(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Book title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author name"),
    publication_type: str = typer.Option("book", "--type", "-t", help="Publication type (book/audiobook)"),
    book_type: Optional[str] = typer.Option(None, "--book-type", help="Format (paperback/hardcover/ebook)"),
    shelf: Optional[str] = typer.Option(None, "--shelf", "-s", help="Shelf name (default: To Read)"),
    narrator: Optional[str] = typer.Option(None, "--narrator", help="Narrator (audiobooks)"),
    isbn: Optional[str] = typer.Option(None, "--isbn", help="ISBN"),
    publisher: Optional[str] = typer.Option(None, "--publisher", help="Publisher"),
    description: Optional[str] = typer.Option(None, "--description", help="Description"),
    pages: Optional[str] = typer.Option(None, "--pages", "-p", help="Page range, e.g. 1-350"),
    duration: Optional[str] = typer.Option(None, "--duration", "-d", help="Duration, e.g. 10h30m or 37800"),
    from_file: Optional[Path] = typer.Option(None, "--from", help="Import books from a JSON or YAML file"),
):
    """
    Add a book, or import several from a file.

    Examples:
        bookshelf add book "Dune" --author "Frank Herbert" --pages 1-412
        bookshelf add book "Dune" --type audiobook --duration 21h2m
        bookshelf add book --from books.json
    """
    state: CLIState = ctx.obj

    if from_file is not None:
        added = ImportService(load_backup(state.file), state.file).import_file(from_file)
        console.print(f"[green]✓ Added {len(added)} book(s)[/green]")
        return

    service = PublicationService(load_backup(state.file), state.file)
    book = service.add(
        name,
        author=author,
        publication_type=publication_type,
        book_type=book_type,
        shelf=shelf,
        narrator=narrator,
        isbn=isbn,
        publisher=publisher,
        description=description,
        pages=pages,
        duration=duration,
    )
    console.print(f"[green]✓ Added book \"{escape(book.name)}\" (ID: {short_id(book.id)})[/green]")


@add_app.command(name="session")
@handle_bookshelf_errors
def add_session(
    ctx: typer.Context,
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    start: Optional[str] = typer.Option(None, "--start", help="Starting page or time (e.g. 50 or 1h30m)"),
    end: Optional[str] = typer.Option(None, "--end", help="Ending page or time"),
    date: Optional[str] = typer.Option(None, "--date", help="Session date (today, yesterday, 2025-01-31)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Session notes"),
):
    """
    Record a reading session for a book.

    Examples:
        bookshelf add session 3F25 --start 1 --end 42
        bookshelf add session 3F25 --start 0 --end 1h30m --notes "Chapter 1"
    """
    state: CLIState = ctx.obj
    service = SessionService(load_backup(state.file), state.file)
    book, session = service.add(book_id, start=start, end=end, date=date, notes=notes)

    label = "time" if book.is_time_based else "pages"
    console.print(
        f"[green]✓ Added session to \"{escape(book.name or '')}\" "
        f"({label} {session.start_value} -> {session.end_value})[/green]"
    )


@edit_app.command(name="book")
@handle_bookshelf_errors
def edit_book(
    ctx: typer.Context,
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    name: Optional[str] = typer.Option(None, "--name", help="New title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="New author"),
    publication_type: Optional[str] = typer.Option(None, "--type", "-t", help="New publication type"),
    book_type: Optional[str] = typer.Option(None, "--book-type", help="New format (empty to clear)"),
    shelf: Optional[str] = typer.Option(None, "--shelf", "-s", help="New shelf"),
    narrator: Optional[str] = typer.Option(None, "--narrator", help="New narrator (empty to clear)"),
    isbn: Optional[str] = typer.Option(None, "--isbn", help="New ISBN (empty to clear)"),
    publisher: Optional[str] = typer.Option(None, "--publisher", help="New publisher (empty to clear)"),
    description: Optional[str] = typer.Option(None, "--description", help="New description (empty to clear)"),
    pages: Optional[str] = typer.Option(None, "--pages", "-p", help="Page range; switches to page tracking"),
    duration: Optional[str] = typer.Option(None, "--duration", "-d", help="Duration; switches to time tracking"),
):
    """
    Edit a book. Only the options given are changed.

    Example:
        bookshelf edit book 3F25 --shelf Read --pages 1-420
    """
    state: CLIState = ctx.obj
    service = PublicationService(load_backup(state.file), state.file)
    book = service.edit(
        book_id,
        pages=pages,
        duration=duration,
        name=name,
        author=author,
        type=publication_type,
        book_type=book_type,
        shelf=shelf,
        narrator=narrator,
        isbn=isbn,
        publisher=publisher,
        description=description,
    )
    console.print(f"[green]✓ Updated \"{escape(book.name or '')}\"[/green]")


@edit_app.command(name="session")
@handle_bookshelf_errors
def edit_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session ID or ID prefix"),
    start: Optional[str] = typer.Option(None, "--start", help="New starting page or time"),
    end: Optional[str] = typer.Option(None, "--end", help="New ending page or time"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="New notes (empty to clear)"),
):
    """Edit a reading session. Only the options given are changed."""
    state: CLIState = ctx.obj
    service = SessionService(load_backup(state.file), state.file)
    book, _ = service.edit(session_id, start=start, end=end, notes=notes)
    console.print(f"[green]✓ Updated session for \"{escape(book.name or '')}\"[/green]")


@delete_app.command(name="book")
@handle_bookshelf_errors
def delete_book(
    ctx: typer.Context,
    book_id: str = typer.Argument(..., help="Book ID or ID prefix"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation"),
):
    """Delete a book and all of its reading sessions."""
    state: CLIState = ctx.obj
    service = PublicationService(load_backup(state.file), state.file)
    book = service.delete(book_id, force=force, confirm=ask_confirmation)

    if book is None:
        console.print("[cyan]Cancelled[/cyan]")
        return
    console.print(f"[green]✓ Deleted \"{escape(book.name or '')}\"[/green]")


@delete_app.command(name="session")
@handle_bookshelf_errors
def delete_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session ID or ID prefix"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation"),
):
    """Delete a reading session."""
    state: CLIState = ctx.obj
    service = SessionService(load_backup(state.file), state.file)
    result = service.delete(session_id, force=force, confirm=ask_confirmation)

    if result is None:
        console.print("[cyan]Cancelled[/cyan]")
        return
    book, _ = result
    console.print(f"[green]✓ Deleted session from \"{escape(book.name or '')}\"[/green]")


# ============================================================================
# Interactive mode and configuration
# ============================================================================

@app.command()
@handle_bookshelf_errors
def interactive(ctx: typer.Context):
    """Browse and edit the library through menus."""
    from .interactive import run

    state: CLIState = ctx.obj
    run(get_file_path(state.file), console=console)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    init: bool = typer.Option(False, "--init", help="Initialize config file with defaults"),
    set_default_file: Optional[str] = typer.Option(None, "--default-file", help="Set default backup file"),
    set_verbose: Optional[bool] = typer.Option(None, "--cli-verbose/--no-cli-verbose", help="Enable verbose output by default"),
    set_color: Optional[bool] = typer.Option(None, "--cli-color/--no-cli-color", help="Enable colored output by default"),
):
    """
    View or edit bookshelf configuration.

    Configuration is stored at ~/.config/bookshelf/config.json (or ~/.bookshelf/config.json).

    Examples:
        bookshelf config --show
        bookshelf config --default-file ~/Documents/pocketshelf.json
    """
    from .config import ensure_config_exists, get_config_path, update_config

    if init:
        config_path = ensure_config_exists()
        console.print(f"[green]Configuration initialized at {config_path}[/green]")
        return

    has_settings = any([
        set_default_file is not None, set_verbose is not None, set_color is not None
    ])

    if has_settings:
        update_config(
            default_file=set_default_file,
            cli_verbose=set_verbose,
            cli_color=set_color,
        )
        console.print(f"[green]Configuration saved to {get_config_path()}[/green]")
        if not show:
            return

    current = load_config()
    console.print("\n[bold]Bookshelf Configuration[/bold]")
    console.print(f"[dim]Location: {get_config_path()}[/dim]\n")

    console.print("[bold cyan]Library Settings:[/bold cyan]")
    if current.library.default_file:
        console.print(f"  Default File: {escape(current.library.default_file)}")
    else:
        console.print("  Default File: [dim]not set[/dim]")

    console.print("\n[bold cyan]CLI Settings:[/bold cyan]")
    console.print(f"  Verbose:     {current.cli.verbose}")
    console.print(f"  Color:       {current.cli.color}")


if __name__ == "__main__":
    app()
