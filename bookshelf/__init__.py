"""
bookshelf - inspect and edit Pocketshelf library backups.

Main API:
    from bookshelf import load_backup, PublicationService, SessionService

    backup = load_backup("library.json")

    # Add a book (saves immediately, keeping library.json.bak)
    books = PublicationService(backup, "library.json")
    dune = books.add("Dune", author="Frank Herbert", pages="1-412")

    # Record a reading session; ids may be shortened to a unique prefix
    sessions = SessionService(backup, "library.json")
    sessions.add(dune.id[:6], start="1", end="42", notes="Prologue")
"""

from .models import Backup, Publication, ReadingSession
from .storage import load_backup, save_backup, get_file_path
from .services import ImportService, PublicationService, QueryService, SessionService

__version__ = "0.1.0"
__all__ = [
    "Backup",
    "Publication",
    "ReadingSession",
    "load_backup",
    "save_backup",
    "get_file_path",
    "ImportService",
    "PublicationService",
    "QueryService",
    "SessionService",
]
