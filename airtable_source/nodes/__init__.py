"""Node objects and their deterministic ids / digests."""

from airtable_source.nodes.ids import (
    content_digest,
    create_node_id,
    field_node_id,
    file_node_id,
    parent_node_id,
)
from airtable_source.nodes.models import AnyNode, ChildNode, FileNode, NodeInternal, ParentNode

__all__ = [
    "content_digest",
    "create_node_id",
    "field_node_id",
    "file_node_id",
    "parent_node_id",
    "AnyNode",
    "ChildNode",
    "FileNode",
    "NodeInternal",
    "ParentNode",
]
