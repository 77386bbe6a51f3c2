"""
Tests for Safari History Extractor.

Tests cover:
- Query and row mapping (_parsers.py)
- get_history on valid, partially corrupt and unusable databases
- Error classification (open failure vs. query failure vs. no rows)
"""

import logging
import sqlite3
from pathlib import Path

import pytest

from core.enums import SafariErrorKind
from extractors.browser.safari import HistoryRecord, get_history
from extractors.browser.safari._parsers import (
    HISTORY_QUERY,
    RowDecodeError,
    UndecodableText,
    decode_text,
    history_record_from_row,
)
from extractors.browser.safari.history.extractor import _map_rows
from extractors.exceptions import DatabaseOpenError, MalformedQueryError, NoHistoryError

from tests.fixtures.safari import (
    FIRST_VISIT_URL,
    history_item,
    history_visit,
    sample_history,
    write_history_db,
)


def _query_rows(db_path: Path):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        return conn.execute(HISTORY_QUERY).fetchall()
    finally:
        conn.close()


def _row_dict(item, visit):
    """A joined history row as a plain mapping keyed like HISTORY_QUERY."""
    row = {key: value for key, value in item.items() if key != "id"}
    row["history_item_id"] = item["id"]
    row.update(visit)
    return row


# =============================================================================
# Row Mapping Tests
# =============================================================================

class TestHistoryRowMapping:
    """Test history_record_from_row column checks."""

    def test_maps_all_columns(self, history_db):
        """First joined row maps every column."""
        record = history_record_from_row(_query_rows(history_db)[0])

        assert record.id == 167
        assert record.url == FIRST_VISIT_URL
        assert record.domain_expansion == "google"
        assert record.visit_count == 2
        assert record.daily_visit_counts == bytes([100, 0, 0, 0])
        assert record.weekly_visit_counts is None
        assert record.autocomplete_triggers is None
        assert record.should_recompute_derived_visit_counts == 0
        assert record.visit_count_score == 100
        assert record.status_code == 0
        assert record.visit_time == 677386043.546784
        assert record.load_successful is True
        assert record.title == "duckduckgo - Google Search"
        assert record.attributes == 0.0
        assert record.score == 100.0

    def test_integer_real_columns_become_float(self, history_db):
        """attributes/score stored as INTEGER still map to float."""
        record = history_record_from_row(_query_rows(history_db)[0])
        assert isinstance(record.attributes, float)
        assert isinstance(record.score, float)

    def test_null_in_required_column_rejected(self, tmp_path):
        """NULL url is a row decode failure."""
        db = write_history_db(
            tmp_path / "History.db",
            [history_item(1, None)],
            [history_visit(1, 1.0)],
        )
        with pytest.raises(RowDecodeError, match="url"):
            history_record_from_row(_query_rows(db)[0])

    def test_wrong_type_rejected(self, tmp_path):
        """TEXT stored in an integer column is a row decode failure."""
        db = write_history_db(
            tmp_path / "History.db",
            [history_item(1, "https://a.test/", visit_count="many")],
            [history_visit(1, 1.0)],
        )
        with pytest.raises(RowDecodeError, match="visit_count"):
            history_record_from_row(_query_rows(db)[0])

    def test_decode_text(self):
        """Valid UTF-8 decodes to str, anything else is wrapped."""
        assert decode_text("caf\u00e9".encode("utf-8")) == "caf\u00e9"
        assert decode_text(b"\xff\xfeA") == UndecodableText(b"\xff\xfeA")

    def test_undecodable_text_rejected(self, history_db):
        """A wrapped TEXT value is a row decode failure naming the column."""
        row = dict(_query_rows(history_db)[0])
        row["url"] = UndecodableText(b"\xff")
        with pytest.raises(RowDecodeError, match="UTF-8 text in column url"):
            history_record_from_row(row)

    def test_to_dict_serializes_blobs_as_int_lists(self, history_db):
        """Blob fields become lists of byte values."""
        data = history_record_from_row(_query_rows(history_db)[0]).to_dict()
        assert data["daily_visit_counts"] == [100, 0, 0, 0]
        assert data["weekly_visit_counts"] is None
        assert data["url"] == FIRST_VISIT_URL


# =============================================================================
# get_history Tests
# =============================================================================

class TestGetHistory:
    """Test get_history end to end."""

    def test_reads_every_visit(self, history_db):
        """42 one-visit items yield 42 records."""
        records = get_history(history_db)

        assert len(records) == 42
        assert all(isinstance(record, HistoryRecord) for record in records)
        assert records[0].id == 167
        assert records[0].title == "duckduckgo - Google Search"

    def test_nullable_columns_preserved(self, history_db):
        """NULL domain_expansion / title come back as None."""
        records = {record.id: record for record in get_history(history_db)}

        assert records[167 + 3].domain_expansion is None
        assert records[167 + 1].domain_expansion == "example1"
        assert records[167 + 4].title is None
        assert records[167 + 5].title == "Page 5"

    def test_one_record_per_visit(self, tmp_path):
        """An item visited twice appears twice; an unvisited item not at all."""
        db = write_history_db(
            tmp_path / "History.db",
            [history_item(1, "https://a.test/"), history_item(2, "https://b.test/")],
            [history_visit(1, 10.0), history_visit(1, 20.0)],
        )
        records = get_history(db)

        assert len(records) == 2
        assert {record.url for record in records} == {"https://a.test/"}
        assert sorted(record.visit_time for record in records) == [10.0, 20.0]

    def test_corrupt_rows_skipped(self, tmp_path):
        """Rows that fail to decode are dropped; the rest are returned."""
        items, visits = sample_history(count=5, first_id=1)
        items[2]["visit_count"] = "many"
        items[4]["url"] = None
        db = write_history_db(tmp_path / "History.db", items, visits)

        records = get_history(db)

        assert sorted(record.id for record in records) == [1, 2, 4]

    def test_invalid_utf8_text_skips_only_that_row(self, tmp_path):
        """A TEXT value that is not UTF-8 drops its row, later rows still load."""
        items, visits = sample_history(count=5, first_id=1)
        db = write_history_db(tmp_path / "History.db", items, visits)
        conn = sqlite3.connect(db)
        try:
            conn.execute(
                "UPDATE history_visits SET title = CAST(X'FFFE41' AS TEXT) WHERE history_item = 2"
            )
            conn.commit()
        finally:
            conn.close()

        records = get_history(db)

        assert sorted(record.id for record in records) == [1, 3, 4, 5]

    def test_stepping_error_keeps_earlier_rows(self, caplog):
        """A cursor failing mid-iteration keeps the rows already mapped."""
        items, visits = sample_history(count=3, first_id=1)
        rows = [_row_dict(item, visit) for item, visit in zip(items, visits)]

        def failing_cursor():
            yield from rows[:2]
            raise sqlite3.DatabaseError("database disk image is malformed")

        with caplog.at_level(logging.WARNING, logger="safari_artifacts"):
            records = _map_rows(failing_cursor(), "History.db")

        assert [record.id for record in records] == [1, 2]
        assert "Stopped reading" in caplog.text

    def test_all_rows_corrupt_is_no_history(self, tmp_path):
        """A database whose every row fails to decode has no history."""
        db = write_history_db(
            tmp_path / "History.db",
            [history_item(1, None)],
            [history_visit(1, 1.0)],
        )
        with pytest.raises(NoHistoryError) as excinfo:
            get_history(db)
        assert excinfo.value.kind is SafariErrorKind.NO_HISTORY

    def test_empty_tables_is_no_history(self, tmp_path):
        """Valid schema with zero visits raises NoHistoryError."""
        db = write_history_db(tmp_path / "History.db", [history_item(1, "https://a.test/")], [])
        with pytest.raises(NoHistoryError) as excinfo:
            get_history(db)
        assert str(excinfo.value) == f"No history data: {db}"

    def test_missing_tables_is_malformed_query(self, tmp_path):
        """A SQLite file without Safari tables cannot run the query."""
        db = tmp_path / "History.db"
        conn = sqlite3.connect(db)
        conn.execute("CREATE TABLE unrelated (id INTEGER)")
        conn.commit()
        conn.close()

        with pytest.raises(MalformedQueryError) as excinfo:
            get_history(db)
        assert excinfo.value.kind is SafariErrorKind.BAD_SQL
        assert isinstance(excinfo.value.cause, sqlite3.Error)

    def test_not_a_database_is_malformed_query(self, tmp_path):
        """A non-SQLite file fails when the query is prepared."""
        db = tmp_path / "BadHistory.db"
        db.write_text("this file is not an sqlite database\n" * 10)

        with pytest.raises(MalformedQueryError):
            get_history(db)

    def test_missing_file_is_open_error(self, tmp_path):
        """A path that cannot be opened raises DatabaseOpenError."""
        missing = tmp_path / "nope" / "History.db"

        with pytest.raises(DatabaseOpenError) as excinfo:
            get_history(missing)
        assert excinfo.value.kind is SafariErrorKind.SQLITE_PARSE
        assert excinfo.value.path == str(missing)
        assert isinstance(excinfo.value.cause, sqlite3.Error)

    def test_does_not_modify_database(self, history_db):
        """Read-only immutable access leaves the file and directory untouched."""
        before = history_db.read_bytes()
        siblings = sorted(p.name for p in history_db.parent.iterdir())

        get_history(history_db)

        assert history_db.read_bytes() == before
        assert sorted(p.name for p in history_db.parent.iterdir()) == siblings

    def test_accepts_string_path(self, history_db):
        """Paths may be given as str."""
        assert len(get_history(str(history_db))) == 42
