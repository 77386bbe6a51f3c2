"""Safari Downloads Extractor - Downloads.plist entries merged with their bookmarks."""

from .extractor import get_downloads, get_users_downloads

__all__ = ["get_downloads", "get_users_downloads"]
