"""
Reading session service.

Session bounds are interpreted through the owning publication's progress
type: durations for ``time`` books, page numbers otherwise.
"""

import logging
from typing import Optional, Tuple

from ..dates import now_timestamp
from ..errors import ParseError, ValidationError
from ..ident import generate_id, short_id
from ..models import Publication, ReadingSession
from ..parse import TIME, parse_date, parse_progress_value
from ..resolver import find_publication, find_session
from .base import BackupService, ConfirmCallback

logger = logging.getLogger(__name__)


def _parse_bound(label: str, text: str, progress_type: str) -> int:
    value = parse_progress_value(text, progress_type)
    if value is None:
        if progress_type == TIME:
            raise ParseError(f"{label} must be a valid duration (e.g. 1h30m or 5400), got '{text}'")
        raise ParseError(f"{label} must be a number, got '{text}'")
    return value


def _check_order(start: float, end: float) -> None:
    if start > end:
        raise ValidationError("End must be greater than or equal to Start")


def notes_from(text: Optional[str]) -> list:
    """A note string becomes a one-element list; empty means no notes."""
    return [text] if text else []


class SessionService(BackupService):
    """Service for managing reading sessions."""

    def get(self, query: str) -> Tuple[Publication, ReadingSession]:
        """Resolve a session across all books by id or id prefix."""
        return find_session(self.backup.publications, query)

    def add(
        self,
        book_query: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
        date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[Publication, ReadingSession]:
        """
        Record a reading session on a book and save the backup.

        Args:
            book_query: Id or id prefix of the book
            start: Starting page or time; 0 when omitted
            end: Ending page or time; 0 when omitted
            date: When the session happened (``today``, ``2025-01-31``...);
                now when omitted
            notes: Optional note text

        Returns:
            ``(book, session)``

        Raises:
            ParseError: A bound or the date could not be parsed
            ValidationError: End before start
        """
        book = find_publication(self.backup.publications, book_query)
        progress_type = book.progress_type

        start_value = _parse_bound("Start", start, progress_type) if start else 0
        end_value = _parse_bound("End", end, progress_type) if end else 0
        _check_order(start_value, end_value)

        if date:
            start_date = parse_date(date)
            if start_date is None:
                raise ParseError(f"Invalid date '{date}'. Use: today, yesterday or 2025-01-31")
        else:
            start_date = now_timestamp()

        session = ReadingSession(
            id=generate_id(),
            start_date=start_date,
            start_value=start_value,
            end_value=end_value,
            notes=notes_from(notes),
        )

        if book.reading_sessions is None:
            book.reading_sessions = []
        book.reading_sessions.append(session)

        self.save()
        logger.debug(
            f"Added session {short_id(session.id)} to '{book.name}' "
            f"({progress_type} {start_value} -> {end_value})"
        )
        return book, session

    def edit(
        self,
        query: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[Publication, ReadingSession]:
        """
        Update a session's bounds and/or notes and save the backup.

        Arguments left as None are not changed. The resulting start and end
        are checked together, so changing only one bound is validated
        against the stored value of the other.

        Raises:
            ParseError: A bound could not be parsed
            ValidationError: Resulting end before start
        """
        book, session = self.get(query)
        progress_type = book.progress_type

        start_value = session.start_value
        end_value = session.end_value
        if start is not None:
            start_value = _parse_bound("Start", start, progress_type)
        if end is not None:
            end_value = _parse_bound("End", end, progress_type)
        _check_order(start_value or 0, end_value or 0)

        session.start_value = start_value
        session.end_value = end_value
        if notes is not None:
            session.notes = notes_from(notes)

        self.save()
        logger.debug(f"Updated session {short_id(session.id)} of '{book.name}'")
        return book, session

    def delete(
        self,
        query: str,
        force: bool = False,
        confirm: Optional[ConfirmCallback] = None,
    ) -> Optional[Tuple[Publication, ReadingSession]]:
        """
        Delete a session and save the backup.

        Returns:
            ``(book, session)`` that was removed, or None when declined
        """
        book, session = self.get(query)

        message = f'Delete session {short_id(session.id)} from "{book.name}"?'
        if not self._confirmed(message, force, confirm):
            return None

        book.reading_sessions = [s for s in book.sessions if s is not session]
        self.save()
        logger.debug(f"Deleted session {short_id(session.id)} from '{book.name}'")
        return book, session
