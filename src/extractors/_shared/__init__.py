"""
Shared utilities for browser extractors.

This package provides common functionality used across extractors:
- timestamps: Browser timestamp format conversions (Cocoa, Unix)
- sqlite_helpers: Safe read-only, lock-bypassing SQLite access

Extractors stay independent from src/core/ infrastructure except for
configuration, enums and logging.
"""

from .timestamps import (
    cocoa_to_datetime,
    cocoa_to_iso,
    datetime_to_cocoa,
    datetime_to_unix_seconds,
    unix_to_iso,
    COCOA_EPOCH_DIFF,
)

from .sqlite_helpers import (
    safe_sqlite_connect,
    sqlite_readonly_uri,
    SQLiteReadError,
)

__all__ = [
    # Timestamps
    'cocoa_to_datetime',
    'cocoa_to_iso',
    'datetime_to_cocoa',
    'datetime_to_unix_seconds',
    'unix_to_iso',
    'COCOA_EPOCH_DIFF',
    # SQLite
    'safe_sqlite_connect',
    'sqlite_readonly_uri',
    'SQLiteReadError',
]
