"""
Bookmark blob adapter for Safari Downloads.plist entries.

Each download entry embeds a ``DownloadEntryBookmarkBlob``: an Apple
bookmark ("book" magic) describing the downloaded file and its volume.
Decoding of the binary layout is done by ``mac_alias``; this module only
maps its table-of-contents values onto BookmarkFields.

TOC values as returned by mac_alias:
- strings and arrays map to str / list
- numbers map to int / float
- dates map to datetime (converted back to Cocoa seconds here)
- property flags are Data wrappers around three little-endian u64 values
- sandbox extensions are Data wrappers around NUL-terminated strings
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Tuple

from mac_alias.bookmark import URL, Bookmark, Data

from ..._shared.timestamps import datetime_to_cocoa
from ...exceptions import BookmarkParseError

# Bookmark TOC keys
kBookmarkPath = 0x1004                 # Array of path components
kBookmarkCNIDPath = 0x1005             # Array of CNIDs
kBookmarkFileProperties = 0x1010       # Resource property flags
kBookmarkFileCreationDate = 0x1040
kBookmarkVolumePath = 0x2002
kBookmarkVolumeURL = 0x2005
kBookmarkVolumeName = 0x2010
kBookmarkVolumeUUID = 0x2011           # Stored as a string
kBookmarkVolumeSize = 0x2012
kBookmarkVolumeCreationDate = 0x2013
kBookmarkVolumeProperties = 0x2020     # Volume property flags
kBookmarkVolumeWasBoot = 0x2030        # True if volume was FS root
kBookmarkContainingFolder = 0xC001     # Index of containing folder in path
kBookmarkUserName = 0xC011
kBookmarkUID = 0xC012
kBookmarkWasFileReference = 0xD001
kBookmarkCreationOptions = 0xD010
kBookmarkDisplayName = 0xF017
kBookmarkSandboxRwExtension = 0xF080
kBookmarkSandboxRoExtension = 0xF081

# CFURL resource property flag: target is executable
RESOURCE_IS_EXECUTABLE = 0x4000

BOOKMARK_MAGICS = (b"book", b"alis")
TOC_MAGIC = 0xFFFFFFFE


@dataclass(frozen=True)
class BookmarkFields:
    """Bookmark-level fields of a download record."""
    path: Tuple[str, ...]
    cnid_path: Tuple[int, ...]
    creation: float
    volume_path: str
    volume_url: str
    volume_name: str
    volume_uuid: str
    volume_size: int
    volume_creation: float
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
    is_executable: bool
    file_ref_flag: bool


_MISSING = object()


def _lookup(bookmark: Bookmark, key: int, default: Any = _MISSING) -> Any:
    for _tocid, toc in bookmark.tocs:
        if key in toc:
            return toc[key]
    if default is _MISSING:
        raise BookmarkParseError(f"Bookmark has no entry for key 0x{key:04x}")
    return default


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, Data):
        return bytes(value.bytes)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise BookmarkParseError(f"Expected data, got {type(value).__name__}")


def _as_str(value: Any) -> str:
    if isinstance(value, URL):
        return str(value.absolute)
    if not isinstance(value, str):
        raise BookmarkParseError(f"Expected string, got {type(value).__name__}")
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BookmarkParseError(f"Expected integer, got {type(value).__name__}")
    return value


def _as_bool(value: Any) -> bool:
    if not isinstance(value, (bool, int)):
        raise BookmarkParseError(f"Expected boolean, got {type(value).__name__}")
    return bool(value)


def _as_cocoa_time(value: Any) -> float:
    if isinstance(value, datetime):
        return datetime_to_cocoa(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise BookmarkParseError(f"Expected date, got {type(value).__name__}")


def _as_flags(value: Any) -> Tuple[int, ...]:
    """Split a property-flag blob into its little-endian u64 words."""
    raw = _as_bytes(value)
    if len(raw) % 8:
        raise BookmarkParseError(f"Property flags length {len(raw)} is not a multiple of 8")
    return tuple(word for (word,) in struct.iter_unpack("<Q", raw))


def _as_extension(value: Any) -> str:
    raw = _as_bytes(value)
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def _as_array(value: Any, convert: Callable[[Any], Any]) -> tuple:
    if not isinstance(value, list):
        raise BookmarkParseError(f"Expected array, got {type(value).__name__}")
    return tuple(convert(item) for item in value)


def _optional(
    bookmark: Bookmark, key: int, convert: Callable[[Any], Any], default: Any
) -> Any:
    value = _lookup(bookmark, key, None)
    if value is None:
        return default
    return convert(value)


def _check_toc_chain(data: bytes) -> None:
    """
    Walk the TOC chain once and reject blobs whose next-TOC offsets cycle.

    mac_alias follows next-TOC links without remembering where it has been,
    so a cycle would never terminate. Other layout faults are left for
    Bookmark.from_bytes to report.
    """
    if len(data) < 16 or data[:4] not in BOOKMARK_MAGICS:
        return
    (hdrsize,) = struct.unpack_from("<I", data, 12)
    if hdrsize + 4 > len(data):
        return
    (tocoffset,) = struct.unpack_from("<I", data, hdrsize)

    seen = set()
    while tocoffset != 0:
        if tocoffset in seen:
            raise BookmarkParseError(f"Bookmark TOC chain loops at offset {tocoffset}")
        seen.add(tocoffset)
        tocbase = hdrsize + tocoffset
        if tocbase + 16 > len(data):
            return
        _tocsize, magic, _tocid, nexttoc = struct.unpack_from("<IIII", data, tocbase)
        if magic != TOC_MAGIC:
            return
        tocoffset = nexttoc


def parse_bookmark(blob: bytes) -> BookmarkFields:
    """
    Decode a bookmark blob into BookmarkFields.

    Args:
        blob: Raw bookmark bytes from DownloadEntryBookmarkBlob

    Returns:
        BookmarkFields for the bookmark target

    Raises:
        BookmarkParseError: If the blob is not a decodable bookmark or has
            no target path
    """
    try:
        data = bytes(blob)
        _check_toc_chain(data)
        bookmark = Bookmark.from_bytes(data)
    except (
        ValueError,
        TypeError,
        IndexError,
        KeyError,
        OverflowError,
        RecursionError,
        struct.error,
    ) as exc:
        raise BookmarkParseError(f"Invalid bookmark data: {exc}") from exc

    if not bookmark.tocs:
        raise BookmarkParseError("Bookmark has no table of contents")

    path = _as_array(_lookup(bookmark, kBookmarkPath), _as_str)
    cnid_path = _as_array(_lookup(bookmark, kBookmarkCNIDPath), _as_int)
    target_flags = _optional(bookmark, kBookmarkFileProperties, _as_flags, ())

    return BookmarkFields(
        path=path,
        cnid_path=cnid_path,
        creation=_optional(bookmark, kBookmarkFileCreationDate, _as_cocoa_time, 0.0),
        volume_path=_optional(bookmark, kBookmarkVolumePath, _as_str, ""),
        volume_url=_optional(bookmark, kBookmarkVolumeURL, _as_str, ""),
        volume_name=_optional(bookmark, kBookmarkVolumeName, _as_str, ""),
        volume_uuid=_optional(bookmark, kBookmarkVolumeUUID, lambda v: str(v).upper(), ""),
        volume_size=_optional(bookmark, kBookmarkVolumeSize, _as_int, 0),
        volume_creation=_optional(bookmark, kBookmarkVolumeCreationDate, _as_cocoa_time, 0.0),
        volume_flag=_optional(bookmark, kBookmarkVolumeProperties, _as_flags, ()),
        volume_root=_optional(bookmark, kBookmarkVolumeWasBoot, _as_bool, False),
        localized_name=_optional(bookmark, kBookmarkDisplayName, _as_str, ""),
        security_extension_rw=_optional(bookmark, kBookmarkSandboxRwExtension, _as_extension, ""),
        security_extension_ro=_optional(bookmark, kBookmarkSandboxRoExtension, _as_extension, ""),
        target_flags=target_flags,
        username=_optional(bookmark, kBookmarkUserName, _as_str, ""),
        folder_index=_optional(bookmark, kBookmarkContainingFolder, _as_int, 0),
        uid=_optional(bookmark, kBookmarkUID, _as_int, 0),
        creation_options=_optional(bookmark, kBookmarkCreationOptions, _as_int, 0),
        is_executable=bool(target_flags and target_flags[0] & RESOURCE_IS_EXECUTABLE),
        file_ref_flag=_optional(bookmark, kBookmarkWasFileReference, _as_bool, False),
    )
