"""Shared fixtures: an isolated environment and a small sample backup."""

import json
from pathlib import Path

import pytest

BOOK_ID = "ABCDEF12-0000-4000-8000-000000000001"
AUDIOBOOK_ID = "ABCDFF99-0000-4000-8000-000000000002"
SESSION_ID = "5E551011-0000-4000-8000-000000000003"

# 2025-01-01T00:00:00Z
NEW_YEAR_2025 = 757382400


def sample_data():
    return {
        "appVersion": "3.2",
        "settings": {"theme": "dark"},
        "publications": [
            {
                "id": BOOK_ID,
                "name": "Dune",
                "author": "Frank Herbert",
                "publicationType": "book",
                "bookType": "paperback",
                "shelf": "Reading",
                "source": "manual",
                "added": NEW_YEAR_2025,
                "start": 1,
                "end": 412,
                "progressMeasurementType": "pages",
                "categoryLabels": [],
                "bookGenre": ["Science Fiction"],
                "glossaryItems": [],
                "coverPalette": {"primary": "#aa8844"},
                "readingSessions": [
                    {
                        "id": SESSION_ID,
                        "startDate": NEW_YEAR_2025,
                        "startValue": 1,
                        "endValue": 42,
                        "notes": ["Prologue"],
                        "mood": "calm",
                    }
                ],
            },
            {
                "id": AUDIOBOOK_ID,
                "name": "Project Hail Mary",
                "author": "Andy Weir",
                "narrator": "Ray Porter",
                "publicationType": "audiobook",
                "shelf": "To Read",
                "start": 0,
                "end": 58320,
                "progressMeasurementType": "time",
                "readingSessions": [],
            },
        ],
    }


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the real config directory and $BOOKSHELF_FILE."""
    config_home = tmp_path / "config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.delenv("BOOKSHELF_FILE", raising=False)
    return config_home


@pytest.fixture
def backup_file(tmp_path) -> Path:
    """A backup file holding one paper book (with a session) and one audiobook."""
    path = tmp_path / "library.json"
    path.write_text(json.dumps(sample_data()), encoding="utf-8")
    return path


def read_json(path: Path):
    return json.loads(Path(path).read_text(encoding="utf-8"))
