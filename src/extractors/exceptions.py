"""
Exceptions for extractor modules.

Every Safari extraction failure is a SafariArtifactError subclass. The set of
subclasses is closed (one per SafariErrorKind), so callers may branch either
on the class or on the ``kind`` attribute.
"""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Optional, Union

from core.enums import PlistFailureReason, SafariErrorKind


class ExtractorError(Exception):
    """Base exception for extractor errors."""
    pass


class SafariArtifactError(ExtractorError):
    """
    Base class for Safari artifact extraction failures.

    Attributes:
        kind: Failure class (one per subclass)
        path: Artifact or directory the failure relates to
        cause: Underlying decoder/OS error, if any
    """

    kind: ClassVar[SafariErrorKind]
    default_message: ClassVar[str] = "Safari artifact extraction failed"

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
    ):
        self.path = str(path) if path is not None else None
        self.cause = cause
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.path:
            return f"{self.message}: {self.path}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!s}, path={self.path!r}, cause={self.cause!r})"


class PathResolutionError(SafariArtifactError):
    """Raised when the base user directory cannot be read."""

    kind = SafariErrorKind.PATH
    default_message = "Failed to get user history file"


class MalformedQueryError(SafariArtifactError):
    """Raised when the fixed history query cannot be composed."""

    kind = SafariErrorKind.BAD_SQL
    default_message = "Could not compose sqlite query"


class DatabaseOpenError(SafariArtifactError):
    """Raised when the history database cannot be opened or read."""

    kind = SafariErrorKind.SQLITE_PARSE
    default_message = "Failed to parse SQLITE History file"


class NoHistoryError(SafariArtifactError):
    """Raised when a history database yields no usable visit rows."""

    kind = SafariErrorKind.NO_HISTORY
    default_message = "No history data"


class PlistDecodeError(SafariArtifactError):
    """Raised when Downloads.plist cannot be decoded."""

    kind = SafariErrorKind.PLIST
    default_message = "Could not parse PLIST file"

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
        reason: PlistFailureReason = PlistFailureReason.CORRUPT,
    ):
        self.reason = reason
        super().__init__(path, cause, message)


class BookmarkDecodeError(SafariArtifactError):
    """Raised when a download entry's embedded bookmark blob cannot be decoded."""

    kind = SafariErrorKind.BOOKMARK
    default_message = "Could not parse PLIST bookmark data"

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
        entry_index: Optional[int] = None,
    ):
        self.entry_index = entry_index
        super().__init__(path, cause, message)


class BookmarkParseError(ValueError):
    """Raised by the bookmark adapter for a single undecodable blob."""
    pass
