"""
Per-user discovery of Safari artifacts.

Each immediate subdirectory of the base user directory is one local
account. For an artifact kind, the account's candidate path is
``<account>/<suffix>``; it is kept only if it names an existing regular
file (and, for Downloads.plist, is below the size ceiling).

Usage::

    from .._discovery import collect_user_results

    results = collect_user_results(ArtifactKind.HISTORY, get_history, config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from core.config import SafariConfig
from core.enums import ArtifactKind
from core.logging import get_logger

from ...exceptions import PathResolutionError, SafariArtifactError
from ._parsers import RecordT, SafariUserResults
from ._patterns import build_artifact_path, extract_user_from_path

__all__ = [
    "UserArtifact",
    "collect_user_results",
    "discover_user_artifacts",
    "is_below_size_limit",
]

LOGGER = get_logger("extractors.browser.safari.discovery")


@dataclass(frozen=True)
class UserArtifact:
    """A validated artifact file belonging to one account."""
    user: str
    account_dir: Path
    path: Path


def is_below_size_limit(path: Union[str, Path], max_size: int) -> bool:
    """
    Check that a file is strictly smaller than ``max_size`` bytes.

    Files whose size cannot be determined are treated as over the limit.
    """
    try:
        file_size = Path(path).stat().st_size
    except OSError as exc:
        LOGGER.warning("Can not determine file size for Safari file %s: %s", path, exc)
        return False
    return file_size < max_size


def discover_user_artifacts(
    base_directory: Union[str, Path],
    suffix: str,
    max_size: Optional[int] = None,
) -> List[UserArtifact]:
    """
    Enumerate accounts under ``base_directory`` that hold the artifact.

    Args:
        base_directory: Directory whose subdirectories are user accounts
        suffix: Artifact path relative to each account directory
        max_size: Optional size ceiling; files at or above it are skipped

    Returns:
        UserArtifact per account with a valid artifact, sorted by account name

    Raises:
        PathResolutionError: If ``base_directory`` cannot be read
    """
    base = Path(base_directory)
    try:
        with os.scandir(base) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        LOGGER.error("Failed to read base directory %s: %s", base, exc)
        raise PathResolutionError(base, exc) from exc

    discovered: List[UserArtifact] = []
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
            candidate = build_artifact_path(entry.path, suffix)
            if not candidate.is_file():
                continue
        except OSError as exc:
            LOGGER.warning("Failed to get user directory %s: %s", entry.path, exc)
            continue

        if max_size is not None and not is_below_size_limit(candidate, max_size):
            LOGGER.warning("Skipping %s: file is not below the %d byte limit", candidate, max_size)
            continue

        user = extract_user_from_path(entry.path, base) or entry.name
        discovered.append(UserArtifact(user=user, account_dir=Path(entry.path), path=candidate))

    return discovered


def collect_user_results(
    kind: ArtifactKind,
    extract: Callable[[Path], Sequence[RecordT]],
    config: Optional[SafariConfig] = None,
) -> List[SafariUserResults[RecordT]]:
    """
    Run ``extract`` over every account's artifact of one kind.

    A failure for one account is logged and that account is omitted;
    only an unreadable base directory aborts the run.

    Raises:
        PathResolutionError: If the base directory cannot be read
    """
    config = config or SafariConfig()
    artifacts = discover_user_artifacts(
        config.base_directory,
        config.suffix_for(kind),
        config.size_limit_for(kind),
    )

    collected: List[SafariUserResults[RecordT]] = []
    for artifact in artifacts:
        LOGGER.info("Parsing file path: %s", artifact.path)
        try:
            records = extract(artifact.path)
        except SafariArtifactError as exc:
            LOGGER.error("Failed to get Safari %s for user %s: %s", kind, artifact.user, exc)
            continue

        collected.append(
            SafariUserResults(
                results=tuple(records),
                path=str(artifact.path),
                user=artifact.user,
            )
        )

    return collected
