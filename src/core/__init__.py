"""Core infrastructure for the Safari artifact extractor."""

from .config import AppConfig, SafariConfig, load_app_config  # noqa: F401
