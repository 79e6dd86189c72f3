"""CLI commands for contentsync.

Provides command-line interface using Typer:
- contentsync serve: Run the API server with the sync scheduler
- contentsync sync: Run one sync pass and print the result

Usage:
    contentsync --help
    contentsync serve --port 8080
    contentsync sync --channel @thmanyahPodcasts
"""

import typer

from contentsync.cli.serve import app as serve_app
from contentsync.cli.sync_cmd import app as sync_app

# Main CLI application
app = typer.Typer(
    name="contentsync",
    help="contentsync: external video ingestion and cached content discovery",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(serve_app, name="serve")
app.add_typer(sync_app, name="sync")


@app.callback()
def callback() -> None:
    """contentsync: external video ingestion and cached content discovery."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
