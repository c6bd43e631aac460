"""Shared plumbing for services that modify a backup."""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..errors import ValidationError
from ..models import Backup
from ..storage import PathLike, save_backup

logger = logging.getLogger(__name__)

# Receives a question such as 'Delete "Dune"?' and returns the user's decision
ConfirmCallback = Callable[[str], bool]

AFFIRMATIVE_ANSWERS = ("y", "yes")


def is_affirmative(answer: Optional[str]) -> bool:
    """Only ``y`` and ``yes`` (any case) count as agreement."""
    return (answer or "").strip().lower() in AFFIRMATIVE_ANSWERS


class BackupService:
    """Base class holding the document being edited and where it is saved."""

    def __init__(self, backup: Backup, path: Optional[PathLike] = None):
        """
        Args:
            backup: In-memory backup document
            path: Backup file; resolved from the environment when omitted
        """
        self.backup = backup
        self.path = path

    def save(self) -> Path:
        return save_backup(self.backup, self.path)

    def _confirmed(self, message: str, force: bool,
                   confirm: Optional[ConfirmCallback]) -> bool:
        if force:
            return True
        if confirm is None:
            raise ValidationError("Confirmation required; pass force=True to skip it")
        if not confirm(message):
            logger.debug(f"Declined: {message}")
            return False
        return True
