"""Read-only endpoints for synced nodes.

Routes
------
GET /nodes                     List all nodes (optional ?type= filter)
GET /nodes/{node_id}           Fetch a single node
GET /nodes/{node_id}/children  Nodes whose parent is node_id
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from airtable_source.store.nodes import StoredNode, get_children, get_node, list_nodes

router = APIRouter()


class NodeResponse(BaseModel):
    id: str
    node_type: str
    parent_id: Optional[str]
    content_digest: str
    payload: dict[str, Any]
    updated_at: int


def _node_response(node: StoredNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "node_type": node.node_type,
        "parent_id": node.parent_id,
        "content_digest": node.content_digest,
        "payload": node.payload,
        "updated_at": node.updated_at,
    }


@router.get("", response_model=list[NodeResponse])
def list_all(request: Request, type: Optional[str] = None) -> list[dict[str, Any]]:
    """Return all nodes, optionally filtered by ``type``."""
    conn = request.app.state.db
    return [_node_response(n) for n in list_nodes(conn, node_type=type)]


@router.get("/{node_id}", response_model=NodeResponse)
def get_one(node_id: str, request: Request) -> dict[str, Any]:
    conn = request.app.state.db
    node = get_node(conn, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id!r}")
    return _node_response(node)


@router.get("/{node_id}/children", response_model=list[NodeResponse])
def children(node_id: str, request: Request) -> list[dict[str, Any]]:
    """Return the child nodes of *node_id* (404 if the node is unknown)."""
    conn = request.app.state.db
    if get_node(conn, node_id) is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id!r}")
    return [_node_response(n) for n in get_children(conn, node_id)]
