"""
Loading and saving backup files.

A backup is a single JSON object. Saves always snapshot the current file to
``<path>.bak`` first, then rewrite the file in compact form.
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

from .config import load_config
from .errors import LoadError, PersistError, ValidationError
from .models import Backup

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATH = "./file"
FILE_ENV_VAR = "BOOKSHELF_FILE"
BACKUP_SUFFIX = ".bak"

PathLike = Union[str, Path]


def get_file_path(override: Optional[PathLike] = None) -> Path:
    """
    Resolve the backup file location.

    Resolution order: explicit argument, ``$BOOKSHELF_FILE``, the
    ``library.default_file`` config setting, then ``./file``.
    """
    if override:
        return Path(override)

    env_path = os.environ.get(FILE_ENV_VAR)
    if env_path:
        return Path(env_path)

    configured = load_config().library.file_path()
    if configured:
        return configured

    return Path(DEFAULT_FILE_PATH)


def backup_path_for(path: PathLike) -> Path:
    """Sibling snapshot path written before every save."""
    path = Path(path)
    return path.with_name(path.name + BACKUP_SUFFIX)


def load_backup(path: Optional[PathLike] = None) -> Backup:
    """
    Load and validate a backup file.

    Validation is permissive: known fields must have the expected type when
    present, unknown fields are kept as-is.

    Args:
        path: Backup file (resolved with get_file_path when omitted)

    Returns:
        The parsed Backup

    Raises:
        LoadError: File missing, unreadable, not JSON, or wrongly shaped
    """
    path = get_file_path(path)
    logger.debug(f"Loading backup from {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        raise LoadError(f"Backup file not found: {path}")
    except OSError as e:
        raise LoadError(f"Cannot read backup file {path}: {e}")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise LoadError(f"Backup file {path} is not valid JSON: {e}")

    try:
        backup = Backup.from_dict(data)
    except ValidationError as e:
        raise LoadError(f"Backup file {path} has an unexpected structure: {e}")

    logger.debug(f"Loaded {len(backup.publications)} publications from {path}")
    return backup


def dumps_backup(backup: Backup) -> str:
    """Serialize a backup as compact single-line JSON."""
    return json.dumps(backup.to_dict(), separators=(",", ":"), ensure_ascii=False)


def save_backup(backup: Backup, path: Optional[PathLike] = None) -> Path:
    """
    Persist a backup.

    The existing file is copied to ``<path>.bak`` (replacing any older
    snapshot) before the file itself is overwritten.

    Args:
        backup: Document to write, passthrough fields included
        path: Target file (resolved with get_file_path when omitted)

    Returns:
        The path written

    Raises:
        PersistError: The document holds a non-JSON value, or the
            snapshot copy or the write failed
    """
    path = get_file_path(path)
    try:
        payload = dumps_backup(backup)
    except (TypeError, ValueError) as e:
        raise PersistError(f"Could not serialize backup for {path}: {e}")

    if path.exists():
        snapshot = backup_path_for(path)
        try:
            shutil.copyfile(path, snapshot)
        except OSError as e:
            raise PersistError(f"Could not back up {path} to {snapshot}: {e}")
        logger.debug(f"Backed up {path} to {snapshot}")

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(payload)
    except OSError as e:
        raise PersistError(f"Could not write {path}: {e}")

    logger.debug(f"Saved {len(backup.publications)} publications to {path}")
    return path
