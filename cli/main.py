"""airtable-source CLI: entry-point for sync and inspection.

Usage:
    python cli/main.py --help

Commands:
    sync     → pull Airtable tables into the local node store
    nodes    → list / show stored nodes
    status   → print the last-fetch record
    serve    → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from airtable_source.xxx
# import ...` works when the CLI is invoked as `python cli/main.py` from any
# working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import Optional

import httpx
import typer

from airtable_source.config import settings
from airtable_source.options import ConfigError, load_options
from airtable_source.pipeline.runner import source_nodes
from airtable_source.store import SqliteSink, SqliteStatus, get_connection, init_db
from airtable_source.store.status import get_status
from cli.commands.nodes import nodes_app

app = typer.Typer(
    name="airtable-source",
    help="Pull Airtable rows into content-addressed nodes.",
    no_args_is_help=True,
)
app.add_typer(nodes_app, name="nodes")


@app.command("sync")
def sync(
    options_path: Optional[Path] = typer.Option(
        None, "--options", help="JSON options file (defaults to AIRTABLE_SOURCE_OPTIONS)."
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Airtable API key."),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", help="Rows processed at once (default 5)."
    ),
) -> None:
    """Fetch every configured table and store its nodes."""
    path = options_path or settings.options_path
    try:
        options = load_options(path)
    except ConfigError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)

    if api_key:
        options.api_key = api_key
    if concurrency is not None:
        options.concurrency = concurrency

    conn = get_connection()
    init_db(conn)
    sink = SqliteSink(conn)
    typer.echo(f"[sync] Syncing {len(options.tables)} table(s) from {path} …")
    try:
        result = asyncio.run(source_nodes(options, sink, SqliteStatus(conn)))
    except httpx.HTTPError as exc:
        typer.echo(f"❌ Sync failed: {exc}")
        raise typer.Exit(code=1)
    finally:
        conn.close()

    if result.halted:
        typer.echo(f"❌ Sync halted: {result.reason}")
        raise typer.Exit(code=1)

    for label in result.tables_skipped:
        typer.echo(f"[sync] Skipped table {label}")
    typer.echo(
        f"✅ {result.rows} rows → {result.nodes_created} nodes "
        f"({sink.written} written, {sink.unchanged} unchanged)"
    )


@app.command("status")
def status() -> None:
    """Print the last-fetch status record."""
    conn = get_connection()
    init_db(conn)
    try:
        record = get_status(conn)
    finally:
        conn.close()
    if not record:
        typer.echo("[status] No sync has run yet.")
        return
    typer.echo(json.dumps(record, indent=2))


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("airtable_source.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
