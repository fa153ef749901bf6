"""Build child nodes for mapped fields and assemble a row's parent node."""

from __future__ import annotations

import json
from typing import Any, Optional

from airtable_source.keys import clean_type
from airtable_source.nodes.ids import content_digest, field_node_id
from airtable_source.nodes.models import ChildNode, NodeInternal, ParentNode
from airtable_source.pipeline.rows import ClassifiedRow
from airtable_source.store.sinks import NodeSink

PARENT_TYPE = "Airtable"
CHILD_TYPE = "AirtableField"


def parent_node_type(row: ClassifiedRow) -> str:
    """``Airtable`` plus the cleaned query name when ``separateNodeType`` is set.

    Without a query name the suffix is dropped and a warning is printed.
    """
    if not row.table.separate_node_type:
        return PARENT_TYPE
    if not row.query_name:
        print(
            f"[warn] {row.table.label}: separateNodeType is set but no queryName "
            "is given. The queryName suffixes the node type; without one it "
            "acts as if separateNodeType were false."
        )
        return PARENT_TYPE
    return f"{PARENT_TYPE}{clean_type(row.query_name)}"


def build_child_node(
    row: ClassifiedRow,
    cleaned_key: str,
    raw: Any,
    tag: str,
    local_files: Optional[list[str]] = None,
) -> ChildNode:
    """Return the child node for one mapped field of *row*.

    The digest covers the whole serialised row, not just this field, so any
    change to the row refreshes all of its child nodes.
    """
    node_type = CHILD_TYPE
    if row.table.separate_map_type:
        node_type = f"{CHILD_TYPE}{clean_type(tag)}"

    return ChildNode(
        id=field_node_id(row.record_id, cleaned_key),
        parent=row.node_id,
        raw=raw,
        local_files=local_files,
        internal=NodeInternal(
            type=node_type,
            media_type=tag,
            content=raw if isinstance(raw, str) else json.dumps(
                raw, ensure_ascii=False, separators=(",", ":")
            ),
            content_digest=content_digest(row.serialize()),
        ),
    )


def assemble_row(
    row: ClassifiedRow,
    data: dict[str, Any],
    children: list[ChildNode],
    sink: NodeSink,
) -> ParentNode:
    """Build the parent node for *row* and emit it, then its children."""
    node = ParentNode(
        id=row.node_id,
        table=row.table_name,
        record_id=row.record_id,
        query_name=row.query_name,
        children=[child.id for child in children],
        internal=NodeInternal(
            type=parent_node_type(row),
            content_digest=content_digest(row.serialize()),
        ),
        data=data,
    )

    sink.create_node(node)
    for child in children:
        sink.create_node(child)
    return node
