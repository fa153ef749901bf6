"""Commands for inspecting synced nodes."""

from __future__ import annotations

import json
from typing import Optional

import typer

from airtable_source.store import get_connection, init_db
from airtable_source.store.nodes import get_children, get_node, list_nodes

nodes_app = typer.Typer(help="Inspect nodes in the local store.", no_args_is_help=True)


@nodes_app.command("list")
def nodes_list(
    node_type: Optional[str] = typer.Option(None, "--type", help="Filter by node type."),
) -> None:
    """List stored nodes (optionally filtered by type)."""
    conn = get_connection()
    init_db(conn)
    try:
        nodes = list_nodes(conn, node_type=node_type)
    finally:
        conn.close()

    if not nodes:
        typer.echo("[nodes list] No nodes found.")
        return
    for n in nodes:
        typer.echo(f"  {n.id}  [{n.node_type}]  digest={n.content_digest}")


@nodes_app.command("show")
def nodes_show(
    node_id: str = typer.Argument(..., help="Node id."),
) -> None:
    """Print a node's payload and its children."""
    conn = get_connection()
    init_db(conn)
    try:
        node = get_node(conn, node_id)
        children = get_children(conn, node_id) if node else []
    finally:
        conn.close()

    if node is None:
        typer.echo(f"❌ Node not found: {node_id}")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(node.payload, indent=2, ensure_ascii=False))
    for child in children:
        typer.echo(f"  └── {child.id}  [{child.node_type}]")
