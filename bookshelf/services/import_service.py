"""
Import service for bulk-adding publications from a file.

The file holds one publication object or a list of them, as JSON (or YAML
for ``.yml``/``.yaml`` files). Every record is validated before any is
added; one bad record aborts the whole import.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..dates import now_timestamp
from ..errors import LoadError, PersistError, ValidationError
from ..ident import generate_id, normalize_id
from ..models import Publication
from ..parse import PAGES
from .base import BackupService
from .publication_service import DEFAULT_SHELF, MANUAL_SOURCE

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "author", "publicationType")
YAML_SUFFIXES = {".yml", ".yaml"}
TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class JSONSafeLoader(yaml.SafeLoader):
    """SafeLoader that leaves unquoted dates as strings."""


JSONSafeLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def import_defaults() -> Dict[str, Any]:
    """Values applied to imported records that leave these fields out."""
    return {
        "id": generate_id(),
        "source": MANUAL_SOURCE,
        "added": now_timestamp(),
        "shelf": DEFAULT_SHELF,
        "start": 0,
        "end": 0,
        "progressMeasurementType": PAGES,
        "readingSessions": [],
        "categoryLabels": [],
        "bookGenre": [],
        "glossaryItems": [],
    }


def read_import_file(path: Path) -> List[Any]:
    """
    Read records from an import file.

    Returns:
        List of raw records (a single object is wrapped in a list)

    Raises:
        LoadError: File unreadable or not valid JSON/YAML
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"Cannot read import file {path}: {e}")

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            parsed = yaml.load(content, Loader=JSONSafeLoader)
        else:
            parsed = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoadError(f"Invalid import file {path}: {e}")

    return parsed if isinstance(parsed, list) else [parsed]


class ImportService(BackupService):
    """Service for importing publications in bulk."""

    def validate(self, records: List[Any]) -> List[Publication]:
        """
        Check every record and build the publications to add.

        Raises:
            ValidationError: A record is not an object, lacks a required
                field, has a wrongly typed or non-JSON value, or reuses an id
        """
        taken = {normalize_id(p.id) for p in self.backup.publications if p.id}
        publications = []

        for index, record in enumerate(records, start=1):
            if not isinstance(record, dict):
                raise ValidationError(f"Record {index} is not an object")

            label = record.get("name") or f"record {index}"
            for key in REQUIRED_FIELDS:
                value = record.get(key)
                if not isinstance(value, str) or not value.strip():
                    raise ValidationError(f"Book \"{label}\" must have a '{key}' field")

            try:
                json.dumps(record, allow_nan=False)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Book \"{label}\" holds a value that is not valid JSON: {e}")

            merged = import_defaults()
            merged.update(record)
            publication = Publication.from_dict(merged)

            record_id = normalize_id(publication.id)
            if not record_id or record_id in taken:
                raise ValidationError(f"Book \"{label}\" has a duplicate id: {publication.id}")
            taken.add(record_id)

            publications.append(publication)

        return publications

    def import_records(self, records: List[Any]) -> List[Publication]:
        """
        Validate, append and save a batch of records.

        A failed save takes the batch back out of the in-memory backup.
        """
        publications = self.validate(records)
        kept = len(self.backup.publications)
        self.backup.publications.extend(publications)
        try:
            self.save()
        except PersistError:
            del self.backup.publications[kept:]
            raise
        logger.debug(f"Imported {len(publications)} publications")
        return publications

    def import_file(self, path: Path) -> List[Publication]:
        """
        Import publications from a JSON or YAML file.

        Returns:
            The publications added
        """
        return self.import_records(read_import_file(path))
