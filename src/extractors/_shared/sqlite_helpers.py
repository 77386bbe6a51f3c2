"""
Safe SQLite helpers for browser extractors.

Provides utilities for safely reading SQLite databases from evidence:
- Read-only connections to prevent modification
- Immutable mode to bypass locks held by a running browser
- Error handling for corrupt/incomplete databases

Evidence databases are never modified; every connection is opened
through a read-only URI.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Union


class SQLiteReadError(Exception):
    """Raised when SQLite database cannot be read."""
    pass


def sqlite_readonly_uri(db_path: Union[str, Path], immutable: bool = True) -> str:
    """
    Build a read-only SQLite URI for a database path.

    ``immutable=1`` tells SQLite the file cannot change, so no locks are
    taken and -wal/-shm companions are neither read nor created.

    Example:
        >>> sqlite_readonly_uri("/Users/a/Library/Safari/History.db")
        'file:///Users/a/Library/Safari/History.db?mode=ro&immutable=1'
    """
    uri = f"{Path(db_path).absolute().as_uri()}?mode=ro"
    if immutable:
        uri += "&immutable=1"
    return uri


@contextmanager
def safe_sqlite_connect(
    db_path: Union[str, Path],
    immutable: bool = True,
    timeout: float = 5.0,
    text_factory: Optional[Callable[[bytes], Any]] = None,
) -> Iterator[sqlite3.Connection]:
    """
    Safely connect to SQLite database in read-only mode.

    Args:
        db_path: Path to the SQLite database file
        immutable: If True, open with ``immutable=1`` (lock-bypassing)
        timeout: Connection timeout in seconds
        text_factory: Optional converter for TEXT values (raw UTF-8 bytes in)

    Yields:
        sqlite3.Connection in read-only mode, rows addressable by column name

    Raises:
        SQLiteReadError: If database cannot be opened

    Example:
        with safe_sqlite_connect("/path/to/History.db") as conn:
            cursor = conn.execute("SELECT url FROM history_items")
            for row in cursor:
                print(row["url"])
    """
    conn: Optional[sqlite3.Connection] = None
    try:
        conn = sqlite3.connect(
            sqlite_readonly_uri(db_path, immutable=immutable),
            uri=True,
            timeout=timeout,
        )
    except sqlite3.Error as e:
        raise SQLiteReadError(f"Failed to open database {db_path}: {e}") from e

    conn.row_factory = sqlite3.Row  # Enable column access by name
    if text_factory is not None:
        conn.text_factory = text_factory
    try:
        yield conn
    finally:
        conn.close()
