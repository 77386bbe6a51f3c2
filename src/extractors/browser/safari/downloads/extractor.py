"""
Safari Downloads Extractor.

Extracts download history from Safari's Downloads.plist. Every entry
carries a bookmark blob describing the downloaded file, its path as
Catalog Node IDs and the volume it lives on; those fields are merged into
the entry's DownloadRecord.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from core.config import SafariConfig
from core.enums import ArtifactKind
from core.logging import get_logger

from ....exceptions import BookmarkDecodeError, BookmarkParseError
from .._bookmark import parse_bookmark
from .._discovery import collect_user_results
from .._parsers import DownloadRecord, SafariUserResults, merge_download, parse_downloads_plist

LOGGER = get_logger("extractors.browser.safari.downloads")


def get_downloads(path: Union[str, Path]) -> List[DownloadRecord]:
    """
    Parse one Safari Downloads.plist.

    A bookmark blob that fails to decode aborts the whole file rather than
    skipping the entry.

    Args:
        path: Path to Downloads.plist

    Returns:
        One DownloadRecord per plist entry, in plist order

    Raises:
        PlistDecodeError: If the plist cannot be decoded
        BookmarkDecodeError: If any entry's bookmark blob cannot be decoded
    """
    entries = parse_downloads_plist(path)

    downloads: List[DownloadRecord] = []
    for index, entry in enumerate(entries):
        try:
            bookmark = parse_bookmark(entry.bookmark_blob)
        except BookmarkParseError as exc:
            LOGGER.error(
                "Failed to parse Safari downloads bookmark data at %s (entry %d): %s",
                path, index, exc,
            )
            raise BookmarkDecodeError(path, exc, entry_index=index) from exc
        downloads.append(merge_download(entry, bookmark))

    return downloads


def get_users_downloads(config: Optional[SafariConfig] = None) -> List[SafariUserResults[DownloadRecord]]:
    """
    Get Safari downloads for every account under the base user directory.

    Downloads.plist files at or above the configured size ceiling are
    skipped, as are accounts whose file fails to extract.

    Raises:
        PathResolutionError: If the base user directory cannot be read
    """
    return collect_user_results(ArtifactKind.DOWNLOADS, get_downloads, config)
