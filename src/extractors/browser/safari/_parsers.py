"""
Safari artifact parsers.

Safari uses Apple-specific formats:
- History.db: SQLite with Cocoa timestamps (seconds since 2001-01-01)
- Downloads.plist: binary plist whose entries each embed a bookmark blob

Key Differences from Chromium/Firefox:
- Timestamps: Cocoa epoch (Jan 1, 2001) not Unix or WebKit
- Downloads: Plist format, not SQLite

History rows are independent tuples, so a row that fails to decode is
skipped by the extractor. A Downloads.plist entry is only meaningful
together with its bookmark, so any decode failure fails the artifact.
"""

from __future__ import annotations

import plistlib
import sqlite3
import struct
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union
from xml.parsers.expat import ExpatError

from core.enums import PlistFailureReason
from core.logging import get_logger

from ..._shared.timestamps import datetime_to_unix_seconds
from ...exceptions import PlistDecodeError
from ._bookmark import BookmarkFields

LOGGER = get_logger("extractors.browser.safari.parsers")


def _jsonable(value: Any) -> Any:
    """Byte blobs serialize as lists of integers."""
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class HistoryRecord:
    """Safari history visit: one history_items row joined with one history_visits row."""
    id: int
    url: str
    domain_expansion: Optional[str]
    visit_count: int
    daily_visit_counts: Optional[bytes]
    weekly_visit_counts: Optional[bytes]
    autocomplete_triggers: Optional[bytes]
    should_recompute_derived_visit_counts: int
    visit_count_score: int
    status_code: int
    visit_time: float  # Cocoa timestamp
    load_successful: bool
    title: Optional[str]
    attributes: float
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {key: _jsonable(value) for key, value in asdict(self).items()}


@dataclass(frozen=True)
class DownloadEntry:
    """Intermediate Downloads.plist entry, before bookmark resolution."""
    source_url: str
    download_path: str
    sandbox_id: str
    download_bytes: int
    download_id: str
    download_entry_date: int    # Unix seconds
    download_entry_finish: int  # Unix seconds
    bookmark_blob: bytes


@dataclass(frozen=True)
class DownloadRecord:
    """Safari download: plist-level fields merged with its bookmark fields."""
    source_url: str
    download_path: str
    sandbox_id: str
    download_bytes: int
    download_id: str
    download_entry_date: int
    download_entry_finish: int
    path: Tuple[str, ...]        # Path components to the downloaded file
    cnid_path: Tuple[int, ...]   # Same path as Catalog Node IDs
    creation: float              # Target creation, Cocoa timestamp
    volume_path: str
    volume_url: str
    volume_name: str
    volume_uuid: str
    volume_size: int
    volume_creation: float       # Cocoa timestamp
    volume_flag: Tuple[int, ...]
    volume_root: bool
    localized_name: str
    security_extension_rw: str
    security_extension_ro: str
    target_flags: Tuple[int, ...]
    username: str
    folder_index: int
    uid: int
    creation_options: int
    has_executable_flag: bool
    file_ref_flag: bool

    def to_dict(self) -> Dict[str, Any]:
        return {key: _jsonable(value) for key, value in asdict(self).items()}


RecordT = TypeVar("RecordT", HistoryRecord, DownloadRecord)


@dataclass(frozen=True)
class SafariUserResults(Generic[RecordT]):
    """Records of one artifact for one account."""
    results: Tuple[RecordT, ...]
    path: str
    user: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [record.to_dict() for record in self.results],
            "path": self.path,
            "user": self.user,
        }


# =============================================================================
# History Parsing
# =============================================================================

# history_items: id, url, domain_expansion, visit_count, daily/weekly visit
#   counts, autocomplete_triggers, should_recompute..., visit_count_score, status_code
# history_visits: history_item, visit_time, title, load_successful, attributes, score
HISTORY_QUERY = """
    SELECT
        history_items.id AS history_item_id,
        url,
        domain_expansion,
        visit_count,
        daily_visit_counts,
        weekly_visit_counts,
        autocomplete_triggers,
        should_recompute_derived_visit_counts,
        visit_count_score,
        status_code,
        visit_time,
        title,
        load_successful,
        attributes,
        score
    FROM history_items
    JOIN history_visits ON history_visits.history_item = history_items.id
"""


class RowDecodeError(ValueError):
    """A single history row has an unexpected NULL or column type."""
    pass


@dataclass(frozen=True)
class UndecodableText:
    """A TEXT value whose bytes are not valid UTF-8."""
    raw: bytes


def decode_text(raw: bytes) -> Union[str, UndecodableText]:
    """
    sqlite3 text_factory for evidence databases.

    The default factory raises mid-step on invalid UTF-8, which ends the
    whole query. Wrapping the bytes instead lets the row mapper reject just
    that row.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return UndecodableText(raw)


def _column(row: sqlite3.Row, name: str, expected: Union[type, Tuple[type, ...]], nullable: bool = False) -> Any:
    try:
        value = row[name]
    except (IndexError, KeyError) as exc:
        raise RowDecodeError(f"Missing column {name}") from exc

    if value is None:
        if nullable:
            return None
        raise RowDecodeError(f"Unexpected NULL in column {name}")
    if isinstance(value, UndecodableText):
        raise RowDecodeError(f"Invalid UTF-8 text in column {name}")
    if not isinstance(value, expected):
        raise RowDecodeError(
            f"Invalid column type {type(value).__name__} in column {name}"
        )
    return value


def history_record_from_row(row: sqlite3.Row) -> HistoryRecord:
    """
    Map one row of HISTORY_QUERY into a HistoryRecord.

    SQLite values are dynamically typed, so every column is checked here:
    integer columns must hold INTEGER, real columns INTEGER or REAL, text
    columns TEXT and blob columns BLOB. Only domain_expansion, title and the
    three blob columns may be NULL.

    Raises:
        RowDecodeError: On an unexpected NULL or type mismatch
    """
    return HistoryRecord(
        id=_column(row, "history_item_id", int),
        url=_column(row, "url", str),
        domain_expansion=_column(row, "domain_expansion", str, nullable=True),
        visit_count=_column(row, "visit_count", int),
        daily_visit_counts=_column(row, "daily_visit_counts", bytes, nullable=True),
        weekly_visit_counts=_column(row, "weekly_visit_counts", bytes, nullable=True),
        autocomplete_triggers=_column(row, "autocomplete_triggers", bytes, nullable=True),
        should_recompute_derived_visit_counts=_column(row, "should_recompute_derived_visit_counts", int),
        visit_count_score=_column(row, "visit_count_score", int),
        status_code=_column(row, "status_code", int),
        visit_time=float(_column(row, "visit_time", (int, float))),
        load_successful=bool(_column(row, "load_successful", int)),
        title=_column(row, "title", str, nullable=True),
        attributes=float(_column(row, "attributes", (int, float))),
        score=float(_column(row, "score", (int, float))),
    )


# =============================================================================
# Downloads Parsing
# =============================================================================

_PLIST_HEADERS = (b"bplist", b"<?xml", b"<plist", b"<!DOCTYPE plist")


def _looks_like_plist(data: bytes) -> bool:
    """Check the leading bytes for a binary or XML plist signature."""
    head = data[:64].lstrip(b"\xef\xbb\xbf \t\r\n")
    return head.startswith(_PLIST_HEADERS)


def _entry_field(entry: Dict[str, Any], key: str, expected: type, default: Any, index: int) -> Any:
    value = entry.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ValueError(
            f"entry {index}: {key} is {type(value).__name__}, expected {expected.__name__}"
        )
    return value


def _download_entry(entry: Any, index: int) -> DownloadEntry:
    if not isinstance(entry, dict):
        raise ValueError(f"entry {index} is {type(entry).__name__}, expected dict")

    blob = entry.get("DownloadEntryBookmarkBlob")
    if not isinstance(blob, (bytes, bytearray)):
        raise ValueError(f"entry {index} has no DownloadEntryBookmarkBlob")

    return DownloadEntry(
        source_url=_entry_field(entry, "DownloadEntryURL", str, "", index),
        download_path=_entry_field(entry, "DownloadEntryPath", str, "", index),
        sandbox_id=_entry_field(entry, "DownloadEntrySandboxIdentifier", str, "", index),
        download_bytes=_entry_field(entry, "DownloadEntryProgressTotalToLoad", int, 0, index),
        download_id=_entry_field(entry, "DownloadEntryIdentifier", str, "", index),
        download_entry_date=datetime_to_unix_seconds(
            _entry_field(entry, "DownloadEntryDateAddedKey", datetime, None, index)
        ),
        download_entry_finish=datetime_to_unix_seconds(
            _entry_field(entry, "DownloadEntryDateFinishedKey", datetime, None, index)
        ),
        bookmark_blob=bytes(blob),
    )


def parse_downloads_plist(file_path: Union[str, Path]) -> List[DownloadEntry]:
    """
    Parse Safari Downloads.plist into intermediate download entries.

    The top level is normally a dictionary with a "DownloadHistory" array;
    a bare array is accepted as well. Entries keep their on-disk order.

    Args:
        file_path: Path to Downloads.plist

    Returns:
        List of DownloadEntry objects (possibly empty)

    Raises:
        PlistDecodeError: If the file is unreadable, not a plist, or any
            entry is malformed. No partial result is returned.
    """
    try:
        data = Path(file_path).read_bytes()
    except OSError as exc:
        LOGGER.error("Failed to read PLIST file at %s: %s", file_path, exc)
        raise PlistDecodeError(file_path, exc) from exc

    if not _looks_like_plist(data):
        LOGGER.error("File at %s is not a PLIST file", file_path)
        raise PlistDecodeError(file_path, reason=PlistFailureReason.NOT_PLIST)

    try:
        plist_data = plistlib.loads(data)
    except (ValueError, ExpatError, TypeError, KeyError, IndexError, OverflowError, struct.error) as exc:
        LOGGER.error("Failed to parse PLIST file at %s: %s", file_path, exc)
        raise PlistDecodeError(file_path, exc) from exc

    if isinstance(plist_data, dict):
        download_list = plist_data.get("DownloadHistory", [])
    else:
        download_list = plist_data

    if not isinstance(download_list, list):
        LOGGER.error("Unexpected Downloads.plist layout at %s", file_path)
        raise PlistDecodeError(file_path, message="Could not parse PLIST file, no DownloadHistory array")

    try:
        return [_download_entry(entry, index) for index, entry in enumerate(download_list)]
    except ValueError as exc:
        LOGGER.error("Failed to parse PLIST file at %s: %s", file_path, exc)
        raise PlistDecodeError(file_path, exc) from exc


def merge_download(entry: DownloadEntry, bookmark: BookmarkFields) -> DownloadRecord:
    """Combine one plist entry with the bookmark decoded from its own blob."""
    return DownloadRecord(
        source_url=entry.source_url,
        download_path=entry.download_path,
        sandbox_id=entry.sandbox_id,
        download_bytes=entry.download_bytes,
        download_id=entry.download_id,
        download_entry_date=entry.download_entry_date,
        download_entry_finish=entry.download_entry_finish,
        path=bookmark.path,
        cnid_path=bookmark.cnid_path,
        creation=bookmark.creation,
        volume_path=bookmark.volume_path,
        volume_url=bookmark.volume_url,
        volume_name=bookmark.volume_name,
        volume_uuid=bookmark.volume_uuid,
        volume_size=bookmark.volume_size,
        volume_creation=bookmark.volume_creation,
        volume_flag=bookmark.volume_flag,
        volume_root=bookmark.volume_root,
        localized_name=bookmark.localized_name,
        security_extension_rw=bookmark.security_extension_rw,
        security_extension_ro=bookmark.security_extension_ro,
        target_flags=bookmark.target_flags,
        username=bookmark.username,
        folder_index=bookmark.folder_index,
        uid=bookmark.uid,
        creation_options=bookmark.creation_options,
        has_executable_flag=bookmark.is_executable,
        file_ref_flag=bookmark.file_ref_flag,
    )
