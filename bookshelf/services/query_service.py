"""
Read-only views over a backup: filtering, counts and statistics.

Everything returned here is plain data (publications, dicts, lists) that
both the table renderer and ``--json`` output consume directly.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

import jmespath
from jmespath.exceptions import JMESPathError

from ..errors import ParseError
from ..models import Backup, Publication

UNKNOWN_SHELF = "Unknown"
UNKNOWN_AUTHOR = "Unknown"
UNKNOWN_TYPE = "unknown"


def _sorted_counts(counter: Counter) -> Dict[str, int]:
    return {key: counter[key] for key in sorted(counter)}


class QueryService:
    """Service for listing and summarising publications."""

    def __init__(self, backup: Backup):
        self.backup = backup

    def filter_publications(
        self,
        shelf: Optional[str] = None,
        publication_type: Optional[str] = None,
        author: Optional[str] = None,
        where: Optional[str] = None,
    ) -> List[Publication]:
        """
        Filter publications.

        Args:
            shelf: Exact shelf name, case-insensitive
            publication_type: Exact type, case-insensitive
            author: Substring of the author, case-insensitive
            where: JMESPath expression evaluated against each publication's
                JSON form, e.g. ``"end > `300` && shelf == 'Read'"``

        Returns:
            Matching publications in file order

        Raises:
            ParseError: Invalid JMESPath expression
        """
        results = list(self.backup.publications)

        if shelf:
            results = [p for p in results if (p.shelf or "").lower() == shelf.lower()]
        if publication_type:
            results = [
                p for p in results
                if (p.publication_type or "").lower() == publication_type.lower()
            ]
        if author:
            results = [p for p in results if author.lower() in (p.author or "").lower()]
        if where:
            try:
                expression = jmespath.compile(where)
                results = [p for p in results if expression.search(p.to_dict())]
            except JMESPathError as e:
                raise ParseError(f"Invalid query expression '{where}': {e}")

        return results

    def shelf_counts(self) -> Dict[str, int]:
        """Number of publications per shelf, sorted by shelf name."""
        return _sorted_counts(Counter(p.shelf or UNKNOWN_SHELF for p in self.backup.publications))

    def author_counts(self) -> Dict[str, int]:
        """Number of publications per author, sorted by author."""
        return _sorted_counts(Counter(p.author or UNKNOWN_AUTHOR for p in self.backup.publications))

    def type_counts(self) -> Dict[str, int]:
        """Number of publications per publication type."""
        return _sorted_counts(
            Counter(p.publication_type or UNKNOWN_TYPE for p in self.backup.publications)
        )

    def stats(self) -> Dict[str, Any]:
        """Library totals, by type and by shelf."""
        return {
            "total": len(self.backup.publications),
            "totalSessions": self.backup.session_count,
            "byType": self.type_counts(),
            "byShelf": self.shelf_counts(),
        }

    def info(self, path: Any) -> Dict[str, Any]:
        """Backup file metadata."""
        return {
            "file": str(path),
            "appVersion": self.backup.app_version or "unknown",
            "publicationCount": len(self.backup.publications),
        }
