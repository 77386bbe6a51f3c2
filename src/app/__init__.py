"""Command-line entry point for the Safari artifact extractor."""
