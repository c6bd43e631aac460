"""
Tests for the command-line interface.
"""

import json

from typer.testing import CliRunner

from bookshelf.cli import app
from bookshelf.config import get_config_path
from bookshelf.storage import backup_path_for
from conftest import AUDIOBOOK_ID, BOOK_ID, SESSION_ID, read_json

runner = CliRunner()


def invoke(backup_file, *args, **kwargs):
    return runner.invoke(app, ["-f", str(backup_file), *args], **kwargs)


class TestReadCommands:

    def test_help_lists_config_fallback(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "library.default_file" in result.output

    def test_info(self, backup_file):
        result = invoke(backup_file, "info")
        assert result.exit_code == 0
        assert "App Version: 3.2" in result.output
        assert "Publications: 2" in result.output

    def test_info_json(self, backup_file):
        result = invoke(backup_file, "--json", "info")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "file": str(backup_file), "appVersion": "3.2", "publicationCount": 2
        }

    def test_file_from_environment(self, backup_file):
        result = runner.invoke(app, ["info"], env={"BOOKSHELF_FILE": str(backup_file)})
        assert result.exit_code == 0
        assert "Publications: 2" in result.output

    def test_list_books(self, backup_file):
        result = invoke(backup_file, "list", "books")
        assert result.exit_code == 0
        assert "Dune" in result.output
        assert "ABCDEF12" in result.output
        assert "Showing 2 of 2 books" in result.output

    def test_list_books_filtered_json(self, backup_file):
        result = invoke(backup_file, "--json", "list", "books", "--type", "audiobook")
        assert result.exit_code == 0
        books = json.loads(result.stdout)
        assert [b["id"] for b in books] == [AUDIOBOOK_ID]

    def test_list_books_where(self, backup_file):
        result = invoke(backup_file, "--json", "list", "books", "--where", "end < `500`")
        assert result.exit_code == 0
        assert [b["name"] for b in json.loads(result.stdout)] == ["Dune"]

    def test_list_books_empty(self, backup_file):
        result = invoke(backup_file, "list", "books", "--shelf", "Nowhere")
        assert result.exit_code == 0
        assert "No books found." in result.output

    def test_list_shelves_and_authors(self, backup_file):
        result = invoke(backup_file, "--json", "list", "shelves")
        assert json.loads(result.stdout) == {"Reading": 1, "To Read": 1}

        result = invoke(backup_file, "list", "authors")
        assert result.exit_code == 0
        assert "Andy Weir" in result.output

    def test_show_book(self, backup_file):
        result = invoke(backup_file, "show", "book", "abcdef")
        assert result.exit_code == 0
        assert "Title:     Dune" in result.output
        assert "Pages:     1 - 412" in result.output
        assert "Sessions:  1" in result.output

    def test_show_book_json_keeps_unknown_fields(self, backup_file):
        result = invoke(backup_file, "--json", "show", "book", BOOK_ID)
        assert json.loads(result.stdout)["coverPalette"] == {"primary": "#aa8844"}

    def test_show_sessions(self, backup_file):
        result = invoke(backup_file, "show", "sessions", "abcdef")
        assert result.exit_code == 0
        assert "ID: 5E551011" in result.output
        assert "Progress: pages 1 -> 42" in result.output
        assert "Prologue" in result.output

    def test_show_audiobook(self, backup_file):
        result = invoke(backup_file, "show", "book", "abcdff")
        assert result.exit_code == 0
        assert "Duration:  16h 12m" in result.output
        assert "Narrator:  Ray Porter" in result.output
        assert "No sessions recorded." in result.output

    def test_stats_json(self, backup_file):
        result = invoke(backup_file, "--json", "stats")
        assert json.loads(result.stdout) == {
            "total": 2,
            "totalSessions": 1,
            "byType": {"audiobook": 1, "book": 1},
            "byShelf": {"Reading": 1, "To Read": 1},
        }

    def test_read_commands_do_not_write(self, backup_file):
        original = backup_file.read_text(encoding="utf-8")
        for args in (["info"], ["list", "books"], ["stats"], ["show", "book", BOOK_ID]):
            assert invoke(backup_file, *args).exit_code == 0
        assert backup_file.read_text(encoding="utf-8") == original
        assert not backup_path_for(backup_file).exists()


class TestErrors:

    def test_missing_file(self, tmp_path):
        result = invoke(tmp_path / "missing.json", "info")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_ambiguous_id(self, backup_file):
        result = invoke(backup_file, "show", "book", "ABCD")
        assert result.exit_code == 1
        assert "Ambiguous" in result.output
        assert "longer id" in result.output

    def test_unknown_id(self, backup_file):
        result = invoke(backup_file, "show", "book", "ZZZZ")
        assert result.exit_code == 1
        assert "Book not found" in result.output

    def test_invalid_page_range(self, backup_file):
        result = invoke(backup_file, "add", "book", "Emma", "--pages", "350-1")
        assert result.exit_code == 1
        assert "Invalid page range" in result.output
        assert len(read_json(backup_file)["publications"]) == 2

    def test_invalid_where(self, backup_file):
        result = invoke(backup_file, "list", "books", "--where", "end >")
        assert result.exit_code == 1
        assert "Invalid query expression" in result.output


class TestMutatingCommands:

    def test_add_book(self, backup_file):
        result = invoke(backup_file, "add", "book", "Dune Messiah", "--author", "Frank Herbert",
                        "--pages", "1-256")
        assert result.exit_code == 0
        assert '✓ Added book "Dune Messiah"' in result.output

        added = read_json(backup_file)["publications"][-1]
        assert added["name"] == "Dune Messiah"
        assert added["shelf"] == "To Read"
        assert (added["start"], added["end"]) == (1, 256)
        assert backup_path_for(backup_file).exists()

    def test_add_book_requires_name(self, backup_file):
        result = invoke(backup_file, "add", "book")
        assert result.exit_code == 1
        assert "name is required" in result.output

    def test_add_book_from_file(self, backup_file, tmp_path):
        source = tmp_path / "books.json"
        source.write_text(json.dumps([
            {"name": "Emma", "author": "Jane Austen", "publicationType": "book"},
            {"name": "Persuasion", "author": "Jane Austen", "publicationType": "book"},
        ]), encoding="utf-8")

        result = invoke(backup_file, "add", "book", "--from", str(source))
        assert result.exit_code == 0
        assert "Added 2 book(s)" in result.output
        assert len(read_json(backup_file)["publications"]) == 4

    def test_add_session(self, backup_file):
        result = invoke(backup_file, "add", "session", "abcdff", "--start", "0", "--end", "1h30m",
                        "-n", "Chapter 1")
        assert result.exit_code == 0
        assert "time 0 -> 5400" in result.output

        session = read_json(backup_file)["publications"][1]["readingSessions"][0]
        assert session["endValue"] == 5400
        assert session["notes"] == ["Chapter 1"]

    def test_add_session_end_before_start(self, backup_file):
        result = invoke(backup_file, "add", "session", "abcdef", "--start", "50", "--end", "20")
        assert result.exit_code == 1
        assert "End must be greater than or equal to Start" in result.output

    def test_edit_book(self, backup_file):
        result = invoke(backup_file, "edit", "book", "abcdef", "--shelf", "Read", "--isbn", "9780441013593")
        assert result.exit_code == 0
        stored = read_json(backup_file)["publications"][0]
        assert stored["shelf"] == "Read"
        assert stored["isbn"] == "9780441013593"
        assert stored["name"] == "Dune"

    def test_edit_session(self, backup_file):
        result = invoke(backup_file, "edit", "session", SESSION_ID[:8], "--end", "60")
        assert result.exit_code == 0
        assert read_json(backup_file)["publications"][0]["readingSessions"][0]["endValue"] == 60

    def test_edit_session_rejects_end_before_start(self, backup_file):
        original = backup_file.read_text(encoding="utf-8")
        result = invoke(backup_file, "edit", "session", SESSION_ID[:8], "--end", "0")
        assert result.exit_code == 1
        assert backup_file.read_text(encoding="utf-8") == original

    def test_delete_book_declined(self, backup_file):
        original = backup_file.read_text(encoding="utf-8")
        result = invoke(backup_file, "delete", "book", "abcdef", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert backup_file.read_text(encoding="utf-8") == original
        assert not backup_path_for(backup_file).exists()

    def test_delete_book_confirmed(self, backup_file):
        result = invoke(backup_file, "delete", "book", "abcdef", input="yes\n")
        assert result.exit_code == 0
        assert '✓ Deleted "Dune"' in result.output
        assert [p["id"] for p in read_json(backup_file)["publications"]] == [AUDIOBOOK_ID]

    def test_delete_session_forced(self, backup_file):
        result = invoke(backup_file, "delete", "session", SESSION_ID[:8], "--force")
        assert result.exit_code == 0
        assert read_json(backup_file)["publications"][0]["readingSessions"] == []


class TestInteractive:

    def test_add_book_through_menus(self, backup_file):
        answers = [
            "2",             # Add a book
            "Dune Messiah",  # title
            "Frank Herbert",  # author
            "1",             # Book
            "4",             # format: Skip
            "",              # shelf: keep default
            "1-256",         # page range
            "4",             # Exit
        ]
        result = invoke(backup_file, "interactive", input="\n".join(answers) + "\n")
        assert result.exit_code == 0
        assert "Goodbye!" in result.output

        added = read_json(backup_file)["publications"][-1]
        assert added["name"] == "Dune Messiah"
        assert added["shelf"] == "To Read"
        assert added["end"] == 256
        assert "bookType" not in added

    def test_delete_book_through_menus(self, backup_file):
        answers = ["1", "1", "7", "y", "4"]
        result = invoke(backup_file, "interactive", input="\n".join(answers) + "\n")
        assert result.exit_code == 0
        assert [p["id"] for p in read_json(backup_file)["publications"]] == [AUDIOBOOK_ID]

    def test_invalid_page_range_is_asked_again(self, backup_file):
        answers = ["2", "Emma", "Jane Austen", "1", "1", "", "350-1", "1-474", "4"]
        result = invoke(backup_file, "interactive", input="\n".join(answers) + "\n")
        assert result.exit_code == 0
        assert "Invalid value" in result.output
        added = read_json(backup_file)["publications"][-1]
        assert added["bookType"] == "paperback"
        assert added["end"] == 474

    def test_editing_only_notes_keeps_stored_bounds(self, backup_file):
        data = read_json(backup_file)
        session = data["publications"][0]["readingSessions"][0]
        session["startValue"], session["endValue"] = 1.5, 42.7
        backup_file.write_text(json.dumps(data), encoding="utf-8")

        # browse, Dune, edit session, first session, keep both bounds, new note, back, exit
        answers = ["1", "1", "5", "1", "", "", "Reread", "8", "4"]
        result = invoke(backup_file, "interactive", input="\n".join(answers) + "\n")
        assert result.exit_code == 0
        assert "Session updated" in result.output

        stored = read_json(backup_file)["publications"][0]["readingSessions"][0]
        assert (stored["startValue"], stored["endValue"]) == (1.5, 42.7)
        assert stored["notes"] == ["Reread"]


class TestConfigCommand:

    def test_set_default_file(self, backup_file):
        result = runner.invoke(app, ["config", "--default-file", str(backup_file)])
        assert result.exit_code == 0
        assert json.loads(get_config_path().read_text())["library"]["default_file"] == str(backup_file)

        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "Publications: 2" in result.output

    def test_show(self):
        result = runner.invoke(app, ["config", "--show"])
        assert result.exit_code == 0
        assert "Default File:" in result.output
