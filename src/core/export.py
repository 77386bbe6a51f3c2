"""
Output writers for extracted Safari artifacts.

Writes one CSV and/or one JSON file per artifact kind into an output
directory. JSON keeps every record field; CSV flattens each record into a
row annotated with the owning account and source path.
"""
from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Sequence

from extractors._shared.timestamps import cocoa_to_iso, unix_to_iso
from extractors.browser.safari import DownloadRecord, HistoryRecord, SafariUserResults

from .enums import ArtifactKind, OutputFormat
from .logging import get_logger

LOGGER = get_logger("core.export")

HISTORY_COLUMNS = [
    "ID",
    "URL",
    "Domain Expansion",
    "Visit Count",
    "Visit Count Score",
    "Status Code",
    "Visit Time",
    "Visit Time (UTC)",
    "Load Successful",
    "Title",
    "Attributes",
    "Score",
    "User",
    "Path",
]

DOWNLOADS_COLUMNS = [
    "Source URL",
    "Download Path",
    "Sandbox ID",
    "Download Bytes",
    "Download ID",
    "Download Start",
    "Download Finish",
    "Path to File",
    "CNID Path",
    "File Creation",
    "Volume Path",
    "Volume URL",
    "Volume UUID",
    "Volume Name",
    "Volume Size",
    "Volume Creation",
    "Volume Flag",
    "Volume Root",
    "Username",
    "UID",
    "Folder Index",
    "Creation Options",
    "User",
    "Path",
]


def _history_row(record: HistoryRecord, container: SafariUserResults) -> List[Any]:
    return [
        record.id,
        record.url,
        record.domain_expansion or "",
        record.visit_count,
        record.visit_count_score,
        record.status_code,
        record.visit_time,
        cocoa_to_iso(record.visit_time) or "",
        record.load_successful,
        record.title or "",
        record.attributes,
        record.score,
        container.user,
        container.path,
    ]


def _downloads_row(record: DownloadRecord, container: SafariUserResults) -> List[Any]:
    return [
        record.source_url,
        record.download_path,
        record.sandbox_id,
        record.download_bytes,
        record.download_id,
        unix_to_iso(record.download_entry_date) or "",
        unix_to_iso(record.download_entry_finish) or "",
        "/".join(record.path),
        str(list(record.cnid_path)),
        cocoa_to_iso(record.creation) or "",
        record.volume_path,
        record.volume_url,
        record.volume_uuid,
        record.volume_name,
        record.volume_size,
        cocoa_to_iso(record.volume_creation) or "",
        str(list(record.volume_flag)),
        record.volume_root,
        record.username,
        record.uid,
        record.folder_index,
        record.creation_options,
        container.user,
        container.path,
    ]


_LAYOUTS: Dict[ArtifactKind, tuple[List[str], Callable[[Any, SafariUserResults], List[Any]]]] = {
    ArtifactKind.HISTORY: (HISTORY_COLUMNS, _history_row),
    ArtifactKind.DOWNLOADS: (DOWNLOADS_COLUMNS, _downloads_row),
}


def output_file_name(kind: ArtifactKind, fmt: OutputFormat) -> str:
    """Return the file name for an artifact kind, e.g. ``output_history.csv``."""
    return f"output_{kind}.{fmt}"


def write_csv(path: Path, kind: ArtifactKind, containers: Iterable[SafariUserResults]) -> int:
    """
    Write containers of one artifact kind as CSV.

    Returns:
        Number of record rows written (header excluded)
    """
    columns, to_row = _LAYOUTS[kind]
    count = 0
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(columns)
        for container in containers:
            for record in container.results:
                writer.writerow(to_row(record, container))
                count += 1
    return count


def write_json(path: Path, containers: Iterable[SafariUserResults]) -> int:
    """
    Write containers as a JSON array of ``{results, path, user}`` objects.

    Returns:
        Number of containers written
    """
    payload = [container.to_dict() for container in containers]
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False)
    return len(payload)


def export_results(
    kind: ArtifactKind,
    containers: Sequence[SafariUserResults],
    output_dir: Path,
    formats: Iterable[OutputFormat] = OutputFormat.all_formats(),
) -> List[Path]:
    """
    Write extraction results of one artifact kind in each requested format.

    Args:
        kind: Artifact kind the containers hold
        containers: Per-user result containers
        output_dir: Destination directory (created if missing)
        formats: Output formats to write

    Returns:
        Paths of the files written
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    for fmt in formats:
        fmt = OutputFormat(fmt)
        path = output_dir / output_file_name(kind, fmt)
        if fmt is OutputFormat.CSV:
            count = write_csv(path, kind, containers)
            LOGGER.info("Wrote %d %s rows to %s", count, kind, path)
        else:
            count = write_json(path, containers)
            LOGGER.info("Wrote %d %s containers to %s", count, kind, path)
        written.append(path)

    return written
