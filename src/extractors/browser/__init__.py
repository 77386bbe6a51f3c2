"""
Browser extractors organized by browser family.

Structure:
    browser/
    └── safari/      # Safari (WebKit engine, macOS only)

Usage:
    from extractors.browser import safari

    # Or directly:
    from extractors.browser.safari import get_history, get_downloads
"""

from . import safari

__all__ = ['safari']
