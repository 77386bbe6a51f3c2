"""Safari History Extractor - History.db visits."""

from .extractor import get_history, get_users_history

__all__ = ["get_history", "get_users_history"]
