"""CLI command for running one sync pass.

Usage:
    contentsync sync
    contentsync sync --channel @someChannel --max-items 50
"""

from __future__ import annotations

import asyncio

import typer

app = typer.Typer(help="Run one sync pass and print the result")


@app.callback(invoke_without_command=True)
def sync(
    channel: str | None = typer.Option(
        None,
        "--channel",
        "-c",
        help="Channel handle (defaults to YOUTUBE_CHANNEL_HANDLE)",
    ),
    max_items: int | None = typer.Option(
        None,
        "--max-items",
        "-n",
        help="Maximum items to fetch this pass",
        min=1,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Run a single sync pass against the configured stores."""
    asyncio.run(_sync(channel, max_items, verbose))


async def _sync(channel: str | None, max_items: int | None, verbose: bool) -> None:
    """Async implementation of the sync command."""
    from rich.console import Console
    from rich.table import Table

    from contentsync.config import settings
    from contentsync.errors import ContentSyncError
    from contentsync.observability import configure_logging
    from contentsync.runtime import ContentSyncRuntime

    configure_logging(json_format=False, level="DEBUG" if verbose else settings.log_level)
    console = Console()

    if not settings.youtube_api_key:
        console.print("[yellow]YOUTUBE_API_KEY is not set; requests will likely be rejected[/yellow]")

    runtime = ContentSyncRuntime.from_settings(settings)
    changes: dict[str, object] = {}
    if channel:
        changes["channel_handle"] = channel
    if max_items:
        changes["max_items_per_pass"] = max_items
    if changes:
        runtime.engine.update_sync_configuration(**changes)

    await runtime.start(run_scheduler=False)
    try:
        handle = runtime.engine.get_sync_configuration().channel_handle
        console.print(f"[blue]Syncing channel:[/blue] {handle}")
        try:
            result = await runtime.engine.run_sync_pass(trigger="cli")
        except ContentSyncError as e:
            console.print(f"[red]Sync failed:[/red] {e}")
            raise typer.Exit(code=1) from e

        await runtime.bus.flush()

        table = Table(title="Sync result")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        for name in ("processed", "created", "updated", "skipped", "failed"):
            table.add_row(name.capitalize(), str(getattr(result, name)))
        table.add_row("Duration", f"{result.duration_ms:.0f} ms")
        table.add_row("Quota used", str(runtime.provider.quota_usage().used))
        console.print(table)

        for error in result.errors:
            console.print(f"[red]  - {error}[/red]")

        if not result.success:
            raise typer.Exit(code=2)
    finally:
        await runtime.stop()

