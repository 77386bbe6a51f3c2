"""
Safari browser artifact locations.

Safari is macOS-only and keeps per-user artifacts in the account's Library:
- History: Library/Safari/History.db (SQLite with Cocoa timestamps)
- Downloads: Library/Safari/Downloads.plist (binary plist with bookmark blobs)

The base directory and per-account suffixes come from SafariConfig, so the
Locator can be pointed at any mounted image or test directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


def build_artifact_path(account_dir: Union[str, Path], suffix: str) -> Path:
    """Join an account directory and a relative artifact path."""
    return Path(account_dir) / suffix.lstrip("/")


def extract_user_from_path(
    account_dir: Union[str, Path],
    base_directory: Union[str, Path],
) -> Optional[str]:
    """
    Derive the account name by stripping the base directory prefix.

    Examples:
        >>> extract_user_from_path('/Users/johndoe', '/Users/')
        'johndoe'
        >>> extract_user_from_path('/Volumes/img/Users/jane', '/Volumes/img/Users')
        'jane'
        >>> extract_user_from_path('/Library', '/Users/') is None
        True
    """
    account = Path(account_dir)
    try:
        relative = account.relative_to(Path(base_directory))
    except ValueError:
        return None

    username = relative.as_posix().strip("/")
    if not username or username == ".":
        return None
    return username
