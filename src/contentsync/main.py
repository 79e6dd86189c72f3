"""Main entry point for the contentsync CLI.

Usage:
    python -m contentsync.main --help
    contentsync --help  # If installed via pip/uv
"""

from contentsync.cli import main

if __name__ == "__main__":
    main()
