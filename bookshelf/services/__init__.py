"""
Services for bookshelf business logic.

Each mutating service works on an in-memory Backup and saves it once per
operation, after all input has been validated.
"""

from .base import BackupService, is_affirmative
from .publication_service import PublicationService
from .session_service import SessionService
from .import_service import ImportService
from .query_service import QueryService

__all__ = [
    'BackupService',
    'is_affirmative',

    # Mutations
    'PublicationService',
    'SessionService',
    'ImportService',

    # Read-only views
    'QueryService',
]
