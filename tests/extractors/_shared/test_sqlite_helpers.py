"""Tests for read-only SQLite access helpers."""

import sqlite3

import pytest

from extractors._shared.sqlite_helpers import (
    SQLiteReadError,
    safe_sqlite_connect,
    sqlite_readonly_uri,
)


class TestReadonlyUri:
    """Test sqlite_readonly_uri."""

    def test_immutable_uri(self, tmp_path):
        uri = sqlite_readonly_uri(tmp_path / "History.db")
        assert uri.startswith("file:///")
        assert uri.endswith("History.db?mode=ro&immutable=1")

    def test_mutable_uri(self, tmp_path):
        assert sqlite_readonly_uri(tmp_path / "History.db", immutable=False).endswith("?mode=ro")

    def test_special_characters_escaped(self, tmp_path):
        """Characters meaningful in URIs are percent-encoded."""
        uri = sqlite_readonly_uri(tmp_path / "my history#1?.db")
        assert "#" not in uri
        assert uri.count("?") == 1


class TestSafeSqliteConnect:
    """Test safe_sqlite_connect."""

    def test_reads_rows_by_name(self, history_db):
        with safe_sqlite_connect(history_db) as conn:
            row = conn.execute("SELECT url FROM history_items WHERE id = 167").fetchone()
        assert row["url"].startswith("https://www.google.com/search")

    def test_text_factory(self, history_db):
        """TEXT values pass through the given converter."""
        with safe_sqlite_connect(history_db, text_factory=bytes) as conn:
            row = conn.execute("SELECT url FROM history_items WHERE id = 167").fetchone()
        assert row["url"].startswith(b"https://www.google.com/search")

    def test_connection_is_read_only(self, history_db):
        with safe_sqlite_connect(history_db) as conn:
            with pytest.raises(sqlite3.OperationalError):
                conn.execute("DELETE FROM history_items")

    def test_path_with_special_characters(self, tmp_path, history_db):
        target = tmp_path / "odd dir #1" / "History?.db"
        target.parent.mkdir()
        target.write_bytes(history_db.read_bytes())

        with safe_sqlite_connect(target) as conn:
            count = conn.execute("SELECT COUNT(*) FROM history_visits").fetchone()[0]
        assert count == 42

    def test_missing_file(self, tmp_path):
        with pytest.raises(SQLiteReadError) as excinfo:
            with safe_sqlite_connect(tmp_path / "missing.db"):
                pass
        assert isinstance(excinfo.value.__cause__, sqlite3.Error)

    def test_query_errors_not_wrapped(self, history_db):
        """Errors raised inside the block propagate unchanged."""
        with pytest.raises(sqlite3.OperationalError):
            with safe_sqlite_connect(history_db) as conn:
                conn.execute("SELECT * FROM no_such_table")

    def test_connection_closed_after_block(self, history_db):
        with safe_sqlite_connect(history_db) as conn:
            pass
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
