"""
Publication service for adding, editing and deleting books.

Page ranges put a publication in ``pages`` mode; durations put it in
``time`` mode with ``start=0`` and ``end`` holding the total length.
"""

import logging
from typing import Optional, Tuple

from ..dates import now_timestamp
from ..errors import ParseError, ValidationError
from ..ident import generate_id, short_id
from ..models import Publication
from ..parse import PAGES, TIME, parse_duration, parse_page_range
from ..resolver import find_publication
from .base import BackupService, ConfirmCallback

logger = logging.getLogger(__name__)

DEFAULT_SHELF = "To Read"
DEFAULT_TYPE = "book"
AUDIOBOOK = "audiobook"
MANUAL_SOURCE = "manual"

# Fields that an empty string clears rather than sets
CLEARABLE = {"narrator", "isbn", "publisher", "book_description", "book_type"}


def parse_progress(pages: Optional[str], duration: Optional[str]) -> Optional[Tuple[str, int, int]]:
    """
    Turn a page range or duration option into ``(type, start, end)``.

    The page range wins when both are given.

    Raises:
        ParseError: The supplied value cannot be parsed
    """
    if pages:
        page_range = parse_page_range(pages)
        if page_range is None:
            raise ParseError(f"Invalid page range '{pages}'. Use: 1-350")
        return PAGES, page_range[0], page_range[1]

    if duration:
        seconds = parse_duration(duration)
        if seconds is None:
            raise ParseError(f"Invalid duration '{duration}'. Use: 3600 or 1h30m")
        return TIME, 0, seconds

    return None


class PublicationService(BackupService):
    """Service for managing publications in a backup."""

    def get(self, query: str) -> Publication:
        """Resolve a publication by id or id prefix."""
        return find_publication(self.backup.publications, query)

    def add(
        self,
        name: Optional[str],
        author: Optional[str] = None,
        publication_type: Optional[str] = None,
        book_type: Optional[str] = None,
        shelf: Optional[str] = None,
        narrator: Optional[str] = None,
        isbn: Optional[str] = None,
        publisher: Optional[str] = None,
        description: Optional[str] = None,
        pages: Optional[str] = None,
        duration: Optional[str] = None,
    ) -> Publication:
        """
        Create a publication and save the backup.

        Args:
            name: Title (required)
            publication_type: ``book`` (default) or ``audiobook``
            shelf: Shelf name, ``To Read`` when empty
            pages: Page range such as ``1-350``
            duration: Duration such as ``10h30m`` (used when no page range)

        Returns:
            The new publication

        Raises:
            ValidationError: Name missing
            ParseError: Page range or duration malformed
        """
        if not name or not name.strip():
            raise ValidationError("Book name is required")

        publication_type = publication_type or DEFAULT_TYPE
        progress = parse_progress(pages, duration)
        if progress is None:
            progress_type = TIME if publication_type == AUDIOBOOK else PAGES
            progress = (progress_type, 0, 0)
        progress_type, start, end = progress

        book = Publication(
            id=generate_id(),
            name=name,
            author=author or None,
            publication_type=publication_type,
            book_type=book_type or None,
            shelf=shelf or DEFAULT_SHELF,
            narrator=narrator or None,
            isbn=isbn or None,
            publisher=publisher or None,
            book_description=description or None,
            source=MANUAL_SOURCE,
            added=now_timestamp(),
            start=start,
            end=end,
            progress_measurement_type=progress_type,
            reading_sessions=[],
            category_labels=[],
            book_genre=[],
            glossary_items=[],
        )

        self.backup.publications.append(book)
        self.save()
        logger.debug(f"Added book '{name}' ({short_id(book.id)})")
        return book

    def edit(
        self,
        query: str,
        pages: Optional[str] = None,
        duration: Optional[str] = None,
        **changes: Optional[str],
    ) -> Publication:
        """
        Apply a sparse update to a publication and save the backup.

        Only arguments that are not None are applied. Keyword arguments use
        the option names from ``Publication.EDITABLE`` (``name``, ``author``,
        ``type``, ``book_type``, ``shelf``, ``narrator``, ``isbn``,
        ``publisher``, ``description``).

        Raises:
            NotFoundError, AmbiguousMatchError: Id did not resolve
            ParseError: Page range or duration malformed
            ValidationError: Unknown field or empty name
        """
        book = self.get(query)

        updates = {}
        for option, value in changes.items():
            if option not in Publication.EDITABLE:
                raise ValidationError(f"Unknown field: {option}")
            if value is None:
                continue
            attr = Publication.EDITABLE[option]
            if attr == "name" and not value.strip():
                raise ValidationError("Book name cannot be empty")
            if attr in CLEARABLE and value == "":
                value = None
            updates[attr] = value

        # Parse everything before touching the record
        page_progress = parse_progress(pages, None) if pages else None
        time_progress = parse_progress(None, duration) if duration else None

        for attr, value in updates.items():
            setattr(book, attr, value)
        for progress in (page_progress, time_progress):
            if progress is not None:
                book.progress_measurement_type, book.start, book.end = progress

        self.save()
        logger.debug(f"Updated book '{book.name}' fields: {sorted(updates)}")
        return book

    def delete(
        self,
        query: str,
        force: bool = False,
        confirm: Optional[ConfirmCallback] = None,
    ) -> Optional[Publication]:
        """
        Delete a publication (and its sessions) and save the backup.

        Args:
            query: Id or id prefix
            force: Skip confirmation
            confirm: Asked before deleting unless ``force`` is set

        Returns:
            The removed publication, or None when the user declined
        """
        book = self.get(query)

        if not self._confirmed(f'Delete "{book.name}"?', force, confirm):
            return None

        self.backup.publications[:] = [
            p for p in self.backup.publications if p is not book
        ]
        self.save()
        logger.debug(f"Deleted book '{book.name}' ({short_id(book.id)})")
        return book
