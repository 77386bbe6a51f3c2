"""
safari-artifacts command line.

With a PATH argument, parses that single History.db or Downloads.plist
(chosen by file name). Without one, parses every account under the base
user directory. Results are written as JSON and/or CSV to the output
directory. Exit code is 1 when an artifact kind could not be extracted
and 2 on usage errors.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from core.app_version import get_app_version
from core.config import AppConfig, load_app_config
from core.enums import ArtifactKind, OutputFormat
from core.export import export_results
from core.logging import configure_logging, get_logger
from extractors.exceptions import SafariArtifactError
from extractors.browser.safari import (
    SafariUserResults,
    get_downloads,
    get_history,
    get_users_downloads,
    get_users_history,
)

LOGGER = get_logger("app.main")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

_SINGLE_FILE_EXTRACTORS = {
    ArtifactKind.HISTORY: get_history,
    ArtifactKind.DOWNLOADS: get_downloads,
}

_ALL_USERS_EXTRACTORS = {
    ArtifactKind.HISTORY: get_users_history,
    ArtifactKind.DOWNLOADS: get_users_downloads,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safari-artifacts",
        description=(
            "Extract Safari history (History.db) and downloads (Downloads.plist). "
            "With PATH, parse that single file; without it, parse every account "
            "under the base user directory."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        help="Single History.db (*.db) or Downloads.plist (*.plist) to parse",
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--base-dir", type=Path, help="Base user directory (default: /Users/)")
    parser.add_argument("--output-dir", type=Path, help="Directory for output files")
    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        choices=[str(fmt) for fmt in OutputFormat.all_formats()],
        help="Output format; repeat for several (default: csv and json)",
    )
    parser.add_argument("--log-dir", type=Path, help="Also write a rotating log file here")
    parser.add_argument("--log-level", help="Logging level (default: WARNING)")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {get_app_version()}")
    return parser


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.base_dir is not None:
        config.safari.base_directory = args.base_dir
    if args.output_dir is not None:
        config.output.directory = args.output_dir
    if args.formats:
        config.output.formats = [OutputFormat(fmt) for fmt in args.formats]
    if args.log_dir is not None:
        config.logging.log_dir = args.log_dir
    if args.log_level:
        config.logging.level = args.log_level.upper()
    return config


def artifact_kind_for(path: Path) -> Optional[ArtifactKind]:
    """Pick the artifact kind from a file name, or None if unrecognized."""
    for kind in ArtifactKind:
        if path.name.endswith(kind.file_suffix):
            return kind
    return None


def _write(kind: ArtifactKind, containers: Sequence[SafariUserResults], config: AppConfig) -> None:
    written = export_results(kind, containers, config.output.directory, config.output.formats)
    names = " and ".join(str(path) for path in written)
    print(f"Finished parsing Safari {kind} data. Saved results to: {names}")


def run_single_file(path: Path, kind: ArtifactKind, config: AppConfig) -> int:
    """Parse one artifact file; no output is written if it fails."""
    extract: Callable = _SINGLE_FILE_EXTRACTORS[kind]
    try:
        records = extract(path)
    except SafariArtifactError as exc:
        print(f"Failed to get {kind} data: {exc}", file=sys.stderr)
        return EXIT_FAILED

    container = SafariUserResults(results=tuple(records), path=str(path), user="")
    _write(kind, [container], config)
    return EXIT_OK


def run_all_users(config: AppConfig) -> int:
    """Parse both artifact kinds for every account; one kind failing does not stop the other."""
    status = EXIT_OK
    for kind, collect in _ALL_USERS_EXTRACTORS.items():
        try:
            containers = collect(config.safari)
        except SafariArtifactError as exc:
            print(f"Failed to get {kind} data: {exc}", file=sys.stderr)
            status = EXIT_FAILED
            continue
        _write(kind, containers, config)
    return status


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _apply_overrides(load_app_config(args.config), args)
        configure_logging(
            log_dir=config.logging.log_dir,
            level=config.logging.level,
            max_bytes=config.logging.log_max_mb * 1024 * 1024,
            backup_count=config.logging.log_backup_count,
        )
    except ValueError as exc:
        parser.error(str(exc))

    LOGGER.debug("Effective configuration: %s", config.to_json())

    if args.path is None:
        print("Getting Safari data...")
        return run_all_users(config)

    kind = artifact_kind_for(args.path)
    if kind is None:
        parser.error(f"cannot tell artifact type of {args.path}: expected a .db or .plist file")
    return run_single_file(args.path, kind, config)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
