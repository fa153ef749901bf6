"""Operations on the ``nodes`` table."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from time import time
from typing import Any, Optional


@dataclass
class StoredNode:
    id: str
    node_type: str
    parent_id: Optional[str]
    content_digest: str
    payload: dict[str, Any]
    created_at: int
    updated_at: int


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_node(row: sqlite3.Row) -> StoredNode:
    return StoredNode(
        id=row["id"],
        node_type=row["node_type"],
        parent_id=row["parent_id"],
        content_digest=row["content_digest"],
        payload=json.loads(row["payload"] or "{}"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def upsert_node(conn: sqlite3.Connection, payload: dict[str, Any]) -> bool:
    """Insert or replace a node from its ``to_dict()`` payload.

    A node whose id and ``contentDigest`` are both unchanged is left alone.

    Returns:
        ``True`` if a row was written, ``False`` if the stored node was
        already identical.
    """
    node_id = payload["id"]
    internal = payload["internal"]
    digest = internal["contentDigest"]

    existing = conn.execute(
        "SELECT content_digest FROM nodes WHERE id = ?", (node_id,)
    ).fetchone()
    if existing is not None and existing["content_digest"] == digest:
        return False

    now = int(time())
    with conn:
        conn.execute(
            """
            INSERT INTO nodes (id, node_type, parent_id, content_digest, payload, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                node_type = excluded.node_type,
                parent_id = excluded.parent_id,
                content_digest = excluded.content_digest,
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (
                node_id,
                internal["type"],
                payload.get("parent"),
                digest,
                json.dumps(payload, default=str),
                now,
                now,
            ),
        )
    return True


def get_node(conn: sqlite3.Connection, node_id: str) -> Optional[StoredNode]:
    """Fetch a single node by id.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM nodes WHERE id = ?", (node_id,)).fetchone()
    return _row_to_node(row) if row else None


def list_nodes(
    conn: sqlite3.Connection,
    node_type: Optional[str] = None,
) -> list[StoredNode]:
    """Return all nodes, optionally filtered by ``node_type``."""
    if node_type:
        rows = conn.execute(
            "SELECT * FROM nodes WHERE node_type = ? ORDER BY id",
            (node_type,),
        ).fetchall()
    else:
        rows = conn.execute("SELECT * FROM nodes ORDER BY id").fetchall()
    return [_row_to_node(r) for r in rows]


def get_children(conn: sqlite3.Connection, parent_id: str) -> list[StoredNode]:
    """Return the nodes whose ``parent`` is *parent_id*."""
    rows = conn.execute(
        "SELECT * FROM nodes WHERE parent_id = ? ORDER BY id", (parent_id,)
    ).fetchall()
    return [_row_to_node(r) for r in rows]


def delete_node(conn: sqlite3.Connection, node_id: str) -> None:
    """Delete a node.  This is a no-op if the node does not exist."""
    with conn:
        conn.execute("DELETE FROM nodes WHERE id = ?", (node_id,))
