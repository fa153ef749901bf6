"""Node objects handed to the sink.

These are plain Python objects.  ``to_dict()`` produces the host-facing
shape: ``id``, ``parent``, ``children`` and an ``internal`` block with
``type`` and ``contentDigest``, plus the kind-specific payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class NodeInternal:
    type: str
    content_digest: str
    media_type: Optional[str] = None
    content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        internal: dict[str, Any] = {
            "type": self.type,
            "contentDigest": self.content_digest,
        }
        if self.media_type is not None:
            internal["mediaType"] = self.media_type
        if self.content is not None:
            internal["content"] = self.content
        return internal


@dataclass(frozen=True)
class ParentNode:
    """One node per Airtable row."""

    id: str
    table: str
    record_id: str
    query_name: Optional[str]
    internal: NodeInternal
    data: dict[str, Any] = field(default_factory=dict)
    children: list[str] = field(default_factory=list)
    parent: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "table": self.table,
            "recordId": self.record_id,
            "queryName": self.query_name,
            "internal": self.internal.to_dict(),
            "data": self.data,
        }


@dataclass(frozen=True)
class ChildNode:
    """One node per mapped field of a row, parented to the row's node."""

    id: str
    parent: str
    raw: Any
    internal: NodeInternal
    local_files: Optional[list[str]] = None
    children: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "raw": self.raw,
            "internal": self.internal.to_dict(),
        }
        if self.local_files is not None:
            node["localFiles___NODE"] = list(self.local_files)
        return node


@dataclass(frozen=True)
class FileNode:
    """A remote attachment materialised on local disk."""

    id: str
    url: str
    path: str
    name: str
    ext: str
    size: int
    internal: NodeInternal
    parent: Optional[str] = None
    children: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "url": self.url,
            "absolutePath": self.path,
            "name": self.name,
            "ext": self.ext,
            "size": self.size,
            "internal": self.internal.to_dict(),
        }


AnyNode = Union[ParentNode, ChildNode, FileNode]
