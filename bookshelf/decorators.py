"""Decorators for bookshelf CLI commands."""

import functools
import logging
from typing import Callable, Any

import typer
from rich.console import Console
from rich.markup import escape

from .errors import AmbiguousMatchError, BookshelfError

logger = logging.getLogger(__name__)
console = Console(stderr=True)


def handle_bookshelf_errors(func: Callable) -> Callable:
    """
    Decorator to turn bookshelf errors into a message and an exit code.

    - BookshelfError (parse, validation, lookup, load, persist): exit 1
    - KeyboardInterrupt: exit 130
    - typer.Exit / typer.Abort pass through untouched
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except AmbiguousMatchError as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            console.print("[yellow]Tip: Copy more characters of the id from 'list' or 'show'[/yellow]")
            raise typer.Exit(code=1)
        except BookshelfError as e:
            logger.debug(f"{func.__name__} failed: {e}", exc_info=True)
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(code=130)

    return wrapper
