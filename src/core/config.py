from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .enums import ArtifactKind, OutputFormat

DEFAULT_CONFIG_PATH = Path("config") / "config.yml"

# Downloads.plist files at or above this size are skipped
DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024  # 2 GiB


@dataclass(slots=True)
class SafariConfig:
    """Artifact locations, resolved relative to each account directory."""

    base_directory: Path = Path("/Users/")
    history_path: str = "Library/Safari/History.db"
    downloads_path: str = "Library/Safari/Downloads.plist"
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def suffix_for(self, kind: ArtifactKind) -> str:
        """Return the per-account relative path for an artifact kind."""
        if kind is ArtifactKind.HISTORY:
            return self.history_path
        return self.downloads_path

    def size_limit_for(self, kind: ArtifactKind) -> Optional[int]:
        """Only Downloads.plist is subject to the size ceiling."""
        if kind is ArtifactKind.DOWNLOADS:
            return self.max_file_size
        return None


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration from config.yml."""

    level: str = "WARNING"
    log_dir: Optional[Path] = None
    log_max_mb: int = 50
    log_backup_count: int = 10


@dataclass(slots=True)
class OutputConfig:
    """Output configuration from config.yml."""

    directory: Path = Path(".")
    formats: List[OutputFormat] = field(default_factory=lambda: list(OutputFormat.all_formats()))


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration resolved from disk."""

    safari: SafariConfig = field(default_factory=SafariConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_json(self) -> str:
        """Serialize the configuration into a JSON string for diagnostics."""
        data = {
            "safari": {
                "base_directory": str(self.safari.base_directory),
                "history_path": self.safari.history_path,
                "downloads_path": self.safari.downloads_path,
                "max_file_size": self.safari.max_file_size,
            },
            "logging": {
                "level": self.logging.level,
                "log_dir": str(self.logging.log_dir) if self.logging.log_dir else None,
            },
            "output": {
                "directory": str(self.output.directory),
                "formats": [str(fmt) for fmt in self.output.formats],
            },
        }
        return json.dumps(data, indent=2, sort_keys=True)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            content = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file {path} is not valid YAML: {exc}") from exc
        if not isinstance(content, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level.")
        return content


def _section(overrides: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = overrides.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping.")
    return section


def load_app_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load application configuration from disk, providing sensible defaults."""

    config_overrides = _load_yaml(config_path or DEFAULT_CONFIG_PATH)

    safari_cfg = _section(config_overrides, "safari")
    defaults = SafariConfig()
    safari_config = SafariConfig(
        base_directory=Path(safari_cfg.get("base_directory", defaults.base_directory)),
        history_path=safari_cfg.get("history_path", defaults.history_path),
        downloads_path=safari_cfg.get("downloads_path", defaults.downloads_path),
        max_file_size=int(safari_cfg.get("max_file_size", defaults.max_file_size)),
    )

    logging_cfg = _section(config_overrides, "logging")
    log_dir = logging_cfg.get("log_dir")
    logging_config = LoggingConfig(
        level=str(logging_cfg.get("level", "WARNING")).upper(),
        log_dir=Path(log_dir) if log_dir else None,
        log_max_mb=logging_cfg.get("log_max_mb", 50),
        log_backup_count=logging_cfg.get("log_backup_count", 10),
    )

    output_cfg = _section(config_overrides, "output")
    formats = output_cfg.get("formats")
    output_config = OutputConfig(
        directory=Path(output_cfg.get("directory", ".")),
        formats=[OutputFormat(fmt) for fmt in formats] if formats else list(OutputFormat.all_formats()),
    )

    return AppConfig(
        safari=safari_config,
        logging=logging_config,
        output=output_config,
    )
