"""
Safari History Extractor.

Extracts browser history from Safari's History.db.
Uses Cocoa timestamps (seconds since January 1, 2001).

Safari History Schema:
- history_items: id, url, domain_expansion, visit_count, ...
- history_visits: history_item, visit_time, title, load_successful, ...
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from core.config import SafariConfig
from core.enums import ArtifactKind
from core.logging import get_logger

from ...._shared.sqlite_helpers import SQLiteReadError, safe_sqlite_connect
from ....exceptions import DatabaseOpenError, MalformedQueryError, NoHistoryError
from .._discovery import collect_user_results
from .._parsers import (
    HISTORY_QUERY,
    HistoryRecord,
    RowDecodeError,
    SafariUserResults,
    decode_text,
    history_record_from_row,
)

LOGGER = get_logger("extractors.browser.safari.history")


def _map_rows(cursor: sqlite3.Cursor, path: Union[str, Path]) -> List[HistoryRecord]:
    records: List[HistoryRecord] = []
    rows = iter(cursor)
    while True:
        try:
            row = next(rows)
        except StopIteration:
            break
        except sqlite3.Error as exc:
            # A stepping error leaves the cursor unusable; keep what was read
            LOGGER.warning("Stopped reading Safari history rows from %s: %s", path, exc)
            break

        try:
            records.append(history_record_from_row(row))
        except RowDecodeError as exc:
            LOGGER.warning("Failed to iterate through Safari history data in %s: %s", path, exc)

    return records


def get_history(path: Union[str, Path]) -> List[HistoryRecord]:
    """
    Query the Safari history tables of one History.db.

    The database is opened read-only and immutable, so a copy held open
    by a running Safari can still be read.

    Args:
        path: Path to History.db

    Returns:
        Non-empty list of HistoryRecord, in join order

    Raises:
        DatabaseOpenError: If the database cannot be opened
        MalformedQueryError: If the history query cannot be run against it
        NoHistoryError: If no row could be mapped
    """
    try:
        with safe_sqlite_connect(path, text_factory=decode_text) as conn:
            try:
                cursor = conn.execute(HISTORY_QUERY)
            except sqlite3.Error as exc:
                LOGGER.error("Failed to compose Safari history SQL query for %s: %s", path, exc)
                raise MalformedQueryError(path, exc) from exc
            records = _map_rows(cursor, path)
    except SQLiteReadError as exc:
        LOGGER.error("Failed to read Safari SQLITE history file %s: %s", path, exc)
        raise DatabaseOpenError(path, exc.__cause__ or exc) from exc

    if not records:
        LOGGER.warning("No Safari history data in %s", path)
        raise NoHistoryError(path)
    return records


def get_users_history(config: Optional[SafariConfig] = None) -> List[SafariUserResults[HistoryRecord]]:
    """
    Get Safari history for every account under the base user directory.

    Accounts without a History.db, or whose History.db fails to extract,
    are omitted.

    Raises:
        PathResolutionError: If the base user directory cannot be read
    """
    return collect_user_results(ArtifactKind.HISTORY, get_history, config)
