"""
Browser artifact extractors for forensic analysis.

Folder Structure:
- browser/         Browser family extractors (safari/)
- _shared/         Shared utilities (timestamps, sqlite_helpers)
"""

from .exceptions import (
    BookmarkDecodeError,
    DatabaseOpenError,
    ExtractorError,
    MalformedQueryError,
    NoHistoryError,
    PathResolutionError,
    PlistDecodeError,
    SafariArtifactError,
)

from . import browser

__all__ = [
    'ExtractorError',
    'SafariArtifactError',
    'PathResolutionError',
    'MalformedQueryError',
    'DatabaseOpenError',
    'NoHistoryError',
    'PlistDecodeError',
    'BookmarkDecodeError',
    'browser',
]
