"""
Resolve user-typed identifier prefixes to records.

Ids are matched case-insensitively, either exactly or by prefix. All
matches are collected: no match and several matches are both errors, the
first match is never picked on the caller's behalf.
"""

import logging
from typing import Iterable, List, Tuple

from .errors import AmbiguousMatchError, NotFoundError
from .ident import normalize_id
from .models import Publication, ReadingSession

logger = logging.getLogger(__name__)


def id_matches(record_id: str, query: str) -> bool:
    """Check whether an already-normalized query selects ``record_id``."""
    if not record_id or not query:
        return False
    candidate = record_id.upper()
    return candidate == query or candidate.startswith(query)


def find_publication(publications: Iterable[Publication], query: str) -> Publication:
    """
    Find exactly one publication by id or id prefix.

    Args:
        publications: Publications to search
        query: Full id or prefix, any case

    Returns:
        The single matching publication

    Raises:
        NotFoundError: Nothing matches
        AmbiguousMatchError: More than one publication matches
    """
    normalized = normalize_id(query)
    matches = [p for p in publications if id_matches(p.id, normalized)]

    if not matches:
        raise NotFoundError(f"Book not found: {query}")
    if len(matches) > 1:
        logger.debug(f"Book id '{normalized}' matched {len(matches)} books")
        raise AmbiguousMatchError(query, len(matches), kind="book")
    return matches[0]


def find_session(
    publications: Iterable[Publication], query: str
) -> Tuple[Publication, ReadingSession]:
    """
    Find exactly one reading session by id or id prefix.

    Every publication's sessions are searched; pass a single publication to
    narrow the search to one book.

    Returns:
        ``(owner, session)``

    Raises:
        NotFoundError: Nothing matches
        AmbiguousMatchError: More than one session matches
    """
    normalized = normalize_id(query)
    matches: List[Tuple[Publication, ReadingSession]] = [
        (book, session)
        for book in publications
        for session in book.sessions
        if id_matches(session.id, normalized)
    ]

    if not matches:
        raise NotFoundError(f"Session not found: {query}")
    if len(matches) > 1:
        logger.debug(f"Session id '{normalized}' matched {len(matches)} sessions")
        raise AmbiguousMatchError(query, len(matches), kind="session")
    return matches[0]
