"""
Record types for a bookshelf backup document.

The producing application may write fields this tool does not know about.
Every record keeps those, and any known field stored as null, in an
``extra`` mapping and writes them back unchanged, so a load/save cycle
never loses data.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .errors import ValidationError
from .parse import PAGES, TIME

STRING = (str,)
NUMBER = (int, float)
LIST = (list,)

# (attribute, JSON key, accepted types)
FieldSpec = Tuple[str, str, tuple]


def _check_type(owner: str, key: str, value: Any, kinds: tuple) -> Any:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ValidationError(
            f"{owner} field '{key}' has unexpected type {type(value).__name__}"
        )
    return value


def _split(owner: str, data: Any, specs: Tuple[FieldSpec, ...]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Separate known fields (type-checked) from passthrough fields.

    Known keys stored as null also stay in the passthrough mapping, so they
    are written back as null unless a value is set later.
    """
    if not isinstance(data, dict):
        raise ValidationError(f"{owner} must be an object, got {type(data).__name__}")

    known_keys = {key for _, key, _ in specs}
    values = {
        attr: _check_type(owner, key, data.get(key), kinds)
        for attr, key, kinds in specs
    }
    extra = {k: v for k, v in data.items() if k not in known_keys or v is None}
    return values, extra


def _merge(specs: Tuple[FieldSpec, ...], record: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for attr, key, _ in specs:
        value = getattr(record, attr)
        if value is not None:
            out[key] = value
    for key, value in record.extra.items():
        out.setdefault(key, value)
    return out


@dataclass
class ReadingSession:
    """One reading or listening interval of a publication."""
    id: Optional[str] = None
    start_date: Optional[float] = None
    start_value: Optional[float] = None
    end_value: Optional[float] = None
    notes: Optional[List[Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    FIELDS: ClassVar[Tuple[FieldSpec, ...]] = (
        ("id", "id", STRING),
        ("start_date", "startDate", NUMBER),
        ("start_value", "startValue", NUMBER),
        ("end_value", "endValue", NUMBER),
        ("notes", "notes", LIST),
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReadingSession':
        values, extra = _split("Reading session", data, cls.FIELDS)
        return cls(extra=extra, **values)

    def to_dict(self) -> Dict[str, Any]:
        return _merge(self.FIELDS, self)

    @property
    def has_note(self) -> bool:
        return bool(self.notes and self.notes[0])


@dataclass
class Publication:
    """A book or audiobook entry."""
    id: Optional[str] = None
    name: Optional[str] = None
    author: Optional[str] = None
    narrator: Optional[str] = None
    publication_type: Optional[str] = None
    book_type: Optional[str] = None
    source: Optional[str] = None
    shelf: Optional[str] = None
    added: Optional[float] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    book_description: Optional[str] = None
    dominant_color_hex: Optional[str] = None
    image_data: Optional[str] = None
    category_labels: Optional[List[Any]] = None
    book_genre: Optional[List[Any]] = None
    glossary_items: Optional[List[Any]] = None
    reading_sessions: Optional[List[ReadingSession]] = None
    start: Optional[float] = None
    end: Optional[float] = None
    progress_measurement_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    FIELDS: ClassVar[Tuple[FieldSpec, ...]] = (
        ("id", "id", STRING),
        ("name", "name", STRING),
        ("author", "author", STRING),
        ("narrator", "narrator", STRING),
        ("publication_type", "publicationType", STRING),
        ("book_type", "bookType", STRING),
        ("source", "source", STRING),
        ("shelf", "shelf", STRING),
        ("added", "added", NUMBER),
        ("isbn", "isbn", STRING),
        ("publisher", "publisher", STRING),
        ("book_description", "bookDescription", STRING),
        ("dominant_color_hex", "dominantColorHex", STRING),
        ("image_data", "imageData", STRING),
        ("category_labels", "categoryLabels", LIST),
        ("book_genre", "bookGenre", LIST),
        ("glossary_items", "glossaryItems", LIST),
        ("reading_sessions", "readingSessions", LIST),
        ("start", "start", NUMBER),
        ("end", "end", NUMBER),
        ("progress_measurement_type", "progressMeasurementType", STRING),
    )

    # Settable from the command line / edit prompts: option name -> attribute
    EDITABLE: ClassVar[Dict[str, str]] = {
        "name": "name",
        "author": "author",
        "type": "publication_type",
        "book_type": "book_type",
        "shelf": "shelf",
        "narrator": "narrator",
        "isbn": "isbn",
        "publisher": "publisher",
        "description": "book_description",
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Publication':
        values, extra = _split("Publication", data, cls.FIELDS)
        sessions = values.pop("reading_sessions")
        if sessions is not None:
            sessions = [ReadingSession.from_dict(s) for s in sessions]
        return cls(reading_sessions=sessions, extra=extra, **values)

    def to_dict(self) -> Dict[str, Any]:
        out = _merge(self.FIELDS, self)
        if self.reading_sessions is not None:
            out["readingSessions"] = [s.to_dict() for s in self.reading_sessions]
        return out

    @property
    def progress_type(self) -> str:
        """Progress measurement type, ``pages`` when unset."""
        return self.progress_measurement_type or PAGES

    @property
    def is_time_based(self) -> bool:
        return self.progress_type == TIME

    @property
    def sessions(self) -> List[ReadingSession]:
        """Reading sessions, never None."""
        return self.reading_sessions or []


@dataclass
class Backup:
    """Root of a backup file."""
    publications: List[Publication] = field(default_factory=list)
    app_version: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    FIELDS: ClassVar[Tuple[FieldSpec, ...]] = (
        ("publications", "publications", LIST),
        ("app_version", "appVersion", STRING),
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Backup':
        values, extra = _split("Backup", data, cls.FIELDS)
        publications = [Publication.from_dict(p) for p in values["publications"] or []]
        return cls(publications=publications, app_version=values["app_version"], extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        out = _merge(self.FIELDS, self)
        out["publications"] = [p.to_dict() for p in self.publications]
        return out

    @property
    def session_count(self) -> int:
        return sum(len(p.sessions) for p in self.publications)

