"""
Core Enumerations

Centralized enum definitions for consistent typing across the codebase.
Using StrEnum (Python 3.11+) for string-based enums that serialize naturally.
"""

from enum import StrEnum


class ArtifactKind(StrEnum):
    """Safari artifact types handled by the extraction pipeline."""

    HISTORY = "history"
    DOWNLOADS = "downloads"

    @property
    def file_suffix(self) -> str:
        """File extension used to pick the artifact kind in single-file mode."""
        return ".db" if self is ArtifactKind.HISTORY else ".plist"


class SafariErrorKind(StrEnum):
    """One value per failure class of the extraction pipeline."""

    PATH = "path"                  # Base user directory unreadable
    BAD_SQL = "bad_sql"            # Fixed history query could not be composed
    SQLITE_PARSE = "sqlite_parse"  # History database could not be opened/read
    NO_HISTORY = "no_history"      # Valid database, zero usable rows
    PLIST = "plist"                # Downloads.plist could not be decoded
    BOOKMARK = "bookmark"          # Embedded bookmark blob could not be decoded


class PlistFailureReason(StrEnum):
    """Diagnostic detail attached to property-list decode failures."""

    NOT_PLIST = "not_plist"
    CORRUPT = "corrupt"


class OutputFormat(StrEnum):
    """Serialization formats written by core.export."""

    CSV = "csv"
    JSON = "json"

    @classmethod
    def all_formats(cls) -> tuple["OutputFormat", ...]:
        """Return every supported output format."""
        return tuple(cls)
