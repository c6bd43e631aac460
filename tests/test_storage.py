"""
Tests for the record types and for loading/saving backup files.
"""

import json
from datetime import date
from pathlib import Path

import pytest

from bookshelf.errors import LoadError, PersistError, ValidationError
from bookshelf.models import Backup, Publication, ReadingSession
from bookshelf.storage import (
    DEFAULT_FILE_PATH,
    backup_path_for,
    dumps_backup,
    get_file_path,
    load_backup,
    save_backup,
)
from conftest import BOOK_ID, read_json, sample_data


class TestModels:

    def test_known_fields_are_mapped(self):
        backup = Backup.from_dict(sample_data())
        dune = backup.publications[0]
        assert backup.app_version == "3.2"
        assert dune.name == "Dune"
        assert dune.publication_type == "book"
        assert dune.book_type == "paperback"
        assert dune.progress_type == "pages"
        assert dune.sessions[0].end_value == 42
        assert dune.sessions[0].has_note

    def test_unknown_fields_are_kept(self):
        backup = Backup.from_dict(sample_data())
        dune = backup.publications[0]
        assert backup.extra == {"settings": {"theme": "dark"}}
        assert dune.extra == {"coverPalette": {"primary": "#aa8844"}}
        assert dune.sessions[0].extra == {"mood": "calm"}

    def test_to_dict_reproduces_input(self):
        data = sample_data()
        assert Backup.from_dict(data).to_dict() == data

    def test_null_known_fields_are_written_back(self):
        data = {"id": "X", "isbn": None, "name": "Emma", "readingSessions": None}
        book = Publication.from_dict(data)
        assert book.isbn is None
        assert book.sessions == []
        assert book.to_dict() == data

    def test_value_set_over_null_field(self):
        book = Publication.from_dict({"id": "X", "narrator": None})
        book.narrator = "Juliet Stevenson"
        assert book.to_dict() == {"id": "X", "narrator": "Juliet Stevenson"}

    def test_defaults_when_fields_missing(self):
        book = Publication.from_dict({"id": "X"})
        assert book.progress_type == "pages"
        assert not book.is_time_based
        assert book.sessions == []

    @pytest.mark.parametrize("data", [
        {"publications": {"id": "X"}},
        {"publications": ["not an object"]},
        {"publications": [{"id": 42}]},
        {"publications": [{"id": "X", "start": "1"}]},
        {"publications": [{"id": "X", "end": True}]},
        {"publications": [{"id": "X", "readingSessions": [{"notes": "text"}]}]},
        {"appVersion": 3},
    ])
    def test_wrong_shapes_are_rejected(self, data):
        with pytest.raises(ValidationError):
            Backup.from_dict(data)

    def test_missing_publications_means_empty(self):
        backup = Backup.from_dict({"appVersion": "1.0"})
        assert backup.publications == []
        assert backup.to_dict() == {"publications": [], "appVersion": "1.0"}

    def test_session_note_flag(self):
        assert not ReadingSession(notes=[]).has_note
        assert not ReadingSession(notes=[""]).has_note
        assert ReadingSession(notes=["Chapter 1"]).has_note


class TestFilePath:

    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BOOKSHELF_FILE", str(tmp_path / "env.json"))
        assert get_file_path(tmp_path / "given.json") == tmp_path / "given.json"

    def test_environment_variable(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BOOKSHELF_FILE", str(tmp_path / "env.json"))
        assert get_file_path() == tmp_path / "env.json"

    def test_configured_default(self, tmp_path):
        from bookshelf.config import update_config

        update_config(default_file=str(tmp_path / "configured.json"))
        assert get_file_path() == tmp_path / "configured.json"

    def test_fallback(self):
        assert get_file_path() == Path(DEFAULT_FILE_PATH)

    def test_backup_path_is_a_sibling(self, tmp_path):
        assert backup_path_for(tmp_path / "library.json") == tmp_path / "library.json.bak"
        assert backup_path_for(tmp_path / "file") == tmp_path / "file.bak"


class TestLoadBackup:

    def test_load(self, backup_file):
        backup = load_backup(backup_file)
        assert len(backup.publications) == 2
        assert backup.publications[0].id == BOOK_ID

    def test_load_from_environment(self, backup_file, monkeypatch):
        monkeypatch.setenv("BOOKSHELF_FILE", str(backup_file))
        assert len(load_backup().publications) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError, match="not found"):
            load_backup(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(LoadError, match="not valid JSON"):
            load_backup(path)

    def test_wrong_structure(self, tmp_path):
        path = tmp_path / "wrong.json"
        path.write_text(json.dumps({"publications": "none"}), encoding="utf-8")
        with pytest.raises(LoadError, match="unexpected structure"):
            load_backup(path)

    def test_top_level_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(LoadError):
            load_backup(path)


class TestSaveBackup:

    def test_round_trip_keeps_unknown_fields(self, backup_file):
        backup = load_backup(backup_file)
        backup.extra["exportedBy"] = {"device": "iPhone", "build": 118}
        backup.publications[0].extra["readingGoal"] = [1, 2, 3]

        save_backup(backup, backup_file)
        reloaded = load_backup(backup_file)

        assert reloaded.extra["exportedBy"] == {"device": "iPhone", "build": 118}
        assert reloaded.extra["settings"] == {"theme": "dark"}
        assert reloaded.publications[0].extra["readingGoal"] == [1, 2, 3]
        assert reloaded.publications[0].sessions[0].extra == {"mood": "calm"}
        assert reloaded.to_dict() == backup.to_dict()

    def test_null_fields_survive_save_and_load(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text(json.dumps({"publications": [
            {"id": "X", "name": "A", "narrator": None,
             "readingSessions": [{"id": "S", "startValue": 1, "endValue": 2, "notes": None}]},
        ]}), encoding="utf-8")

        save_backup(load_backup(path), path)

        stored = read_json(path)["publications"][0]
        assert stored["narrator"] is None
        assert stored["readingSessions"][0]["notes"] is None

    def test_non_json_value_is_a_persist_error(self, backup_file):
        original = backup_file.read_text(encoding="utf-8")
        backup = load_backup(backup_file)
        backup.extra["exportedAt"] = date(2025, 1, 31)

        with pytest.raises(PersistError, match="serialize"):
            save_backup(backup, backup_file)
        assert backup_file.read_text(encoding="utf-8") == original
        assert not backup_path_for(backup_file).exists()

    def test_writes_compact_json(self, backup_file):
        backup = load_backup(backup_file)
        save_backup(backup, backup_file)
        content = backup_file.read_text(encoding="utf-8")
        assert "\n" not in content
        assert content == dumps_backup(backup)

    def test_previous_contents_go_to_bak(self, backup_file):
        original = backup_file.read_text(encoding="utf-8")
        backup = load_backup(backup_file)
        backup.publications.pop()

        save_backup(backup, backup_file)

        snapshot = backup_path_for(backup_file)
        assert snapshot.read_text(encoding="utf-8") == original
        assert len(read_json(backup_file)["publications"]) == 1

    def test_bak_replaced_on_each_save(self, backup_file):
        backup = load_backup(backup_file)
        save_backup(backup, backup_file)
        first_save = backup_file.read_text(encoding="utf-8")

        backup.publications[0].name = "Dune Messiah"
        save_backup(backup, backup_file)

        assert backup_path_for(backup_file).read_text(encoding="utf-8") == first_save
        assert read_json(backup_file)["publications"][0]["name"] == "Dune Messiah"

    def test_new_file_has_no_bak(self, tmp_path):
        path = tmp_path / "fresh.json"
        save_backup(Backup(), path)
        assert read_json(path) == {"publications": []}
        assert not backup_path_for(path).exists()

    def test_unwritable_target(self, tmp_path):
        with pytest.raises(PersistError):
            save_backup(Backup(), tmp_path / "no-such-dir" / "library.json")

    def test_unicode_is_written_as_is(self, tmp_path):
        path = tmp_path / "library.json"
        save_backup(Backup(publications=[Publication(id="X", name="Cien años de soledad")]), path)
        assert "Cien años de soledad" in path.read_text(encoding="utf-8")
