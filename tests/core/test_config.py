"""Tests for YAML configuration loading."""

import json
from pathlib import Path

import pytest

from core.config import DEFAULT_MAX_FILE_SIZE, AppConfig, SafariConfig, load_app_config
from core.enums import ArtifactKind, OutputFormat


def test_missing_file_gives_defaults(tmp_path):
    config = load_app_config(tmp_path / "absent.yml")

    assert config.safari.base_directory == Path("/Users/")
    assert config.safari.history_path == "Library/Safari/History.db"
    assert config.safari.downloads_path == "Library/Safari/Downloads.plist"
    assert config.safari.max_file_size == DEFAULT_MAX_FILE_SIZE
    assert config.logging.level == "WARNING"
    assert config.logging.log_dir is None
    assert config.output.formats == [OutputFormat.CSV, OutputFormat.JSON]


def test_overrides_from_yaml(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        """
safari:
  base_directory: /Volumes/image/Users
  max_file_size: 1024
logging:
  level: debug
  log_dir: logs
output:
  directory: out
  formats: [json]
""",
        encoding="utf-8",
    )

    config = load_app_config(path)

    assert config.safari.base_directory == Path("/Volumes/image/Users")
    assert config.safari.max_file_size == 1024
    assert config.safari.history_path == "Library/Safari/History.db"
    assert config.logging.level == "DEBUG"
    assert config.logging.log_dir == Path("logs")
    assert config.output.directory == Path("out")
    assert config.output.formats == [OutputFormat.JSON]


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")
    assert load_app_config(path).safari == SafariConfig()


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "safari: [1, 2]\n",
        "safari: {base_directory: /x\n",
        "output:\n  formats: [xml]\n",
    ],
)
def test_invalid_config_rejected(tmp_path, content):
    path = tmp_path / "config.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_app_config(path)


def test_shipped_config_matches_defaults():
    """config/config.yml restates the built-in defaults."""
    shipped = Path(__file__).resolve().parents[2] / "config" / "config.yml"
    config = load_app_config(shipped)
    assert config.safari == SafariConfig()
    assert config.output.formats == list(OutputFormat.all_formats())


def test_size_limit_only_for_downloads():
    config = SafariConfig(max_file_size=10)
    assert config.size_limit_for(ArtifactKind.DOWNLOADS) == 10
    assert config.size_limit_for(ArtifactKind.HISTORY) is None
    assert config.suffix_for(ArtifactKind.HISTORY) == "Library/Safari/History.db"


def test_to_json_round_trips_as_json():
    data = json.loads(AppConfig().to_json())
    assert data["safari"]["base_directory"] == "/Users"
    assert data["output"]["formats"] == ["csv", "json"]
    assert data["logging"]["log_dir"] is None
