"""
Safari Browser Artifact Extractors.

Safari is Apple's web browser, exclusive to macOS.
Uses WebKit engine with Apple-specific data formats:
- Cocoa timestamps (seconds since 2001-01-01)
- SQLite history database (History.db)
- Binary plist download list with embedded bookmark blobs (Downloads.plist)

Exported operations:
- get_history / get_users_history: visits from History.db
- get_downloads / get_users_downloads: downloads from Downloads.plist
"""

from ._parsers import DownloadRecord, HistoryRecord, SafariUserResults
from .downloads import get_downloads, get_users_downloads
from .history import get_history, get_users_history

__all__ = [
    "DownloadRecord",
    "HistoryRecord",
    "SafariUserResults",
    "get_downloads",
    "get_history",
    "get_users_downloads",
    "get_users_history",
]
