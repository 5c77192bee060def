"""Command-line entry point for the fromsuper build step."""
