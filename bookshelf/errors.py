"""Exception types raised by bookshelf operations."""


class BookshelfError(Exception):
    """Base class for all bookshelf errors."""


class ParseError(BookshelfError, ValueError):
    """A page range, duration, date or number could not be parsed."""


class ValidationError(BookshelfError, ValueError):
    """A record would violate a structural invariant."""


class NotFoundError(BookshelfError):
    """An identifier matched no record."""


class AmbiguousMatchError(BookshelfError):
    """An identifier prefix matched more than one record."""

    def __init__(self, query: str, count: int, kind: str = "record"):
        self.query = query
        self.count = count
        self.kind = kind
        super().__init__(
            f"Ambiguous {kind} id '{query}' matches {count} {kind}s; "
            f"use a longer id"
        )


class LoadError(BookshelfError):
    """The backup file is missing, unreadable or structurally invalid."""


class PersistError(BookshelfError):
    """The backup copy or the final write did not complete."""
