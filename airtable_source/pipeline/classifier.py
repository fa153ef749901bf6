"""Split a row's fields into plain values, record links and child nodes.

Every field is classified exactly once into one of three kinds, first match
wins:

``LinkField``
    The cleaned name is listed in the table's ``tableLinks``.  The value is
    a list of Airtable record ids, rewritten to the ids of their row nodes
    under ``<key>___NODE``.
``MappedField``
    The cleaned name has a tag in the table's ``mapping``.  The value gets
    its own child node; ``<key>___NODE`` points at it.
``PlainField``
    Anything else is copied verbatim under the cleaned name.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Union

from airtable_source.files.fetcher import FileMaterializer
from airtable_source.keys import CleanKey
from airtable_source.nodes.ids import field_node_id, parent_node_id
from airtable_source.nodes.models import ChildNode
from airtable_source.options import TableConfig
from airtable_source.pipeline.attachments import FILE_NODE, resolve_attachments
from airtable_source.pipeline.builder import build_child_node
from airtable_source.pipeline.rows import ClassifiedRow

NODE_SUFFIX = "___NODE"


@dataclass(frozen=True)
class PlainField:
    pass


@dataclass(frozen=True)
class LinkField:
    pass


@dataclass(frozen=True)
class MappedField:
    tag: str

    @property
    def is_file(self) -> bool:
        return self.tag == FILE_NODE


FieldKind = Union[PlainField, LinkField, MappedField]


@dataclass
class ClassifiedFields:
    data: dict[str, Any] = field(default_factory=dict)
    children: list[ChildNode] = field(default_factory=list)


def classify_field(cleaned_key: str, table: TableConfig) -> FieldKind:
    if cleaned_key in table.table_links:
        return LinkField()
    tag = table.mapping.get(cleaned_key)
    if tag:
        return MappedField(tag)
    return PlainField()


def link_ids(value: Any) -> list[str]:
    """Translate linked Airtable record ids to their row node ids."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [parent_node_id(record_id) for record_id in value]


async def classify_row(
    row: ClassifiedRow,
    clean_key: CleanKey,
    files: FileMaterializer,
) -> ClassifiedFields:
    """Classify every field of *row* and build its child nodes.

    Child builds for all mapped fields run concurrently and have all
    finished when this returns.
    """
    result = ClassifiedFields()
    pending = []

    for key, value in row.fields.items():
        cleaned_key = clean_key(key)
        kind = classify_field(cleaned_key, row.table)

        if isinstance(kind, LinkField):
            result.data[f"{cleaned_key}{NODE_SUFFIX}"] = link_ids(value)
        elif isinstance(kind, MappedField):
            result.data[f"{cleaned_key}{NODE_SUFFIX}"] = field_node_id(
                row.record_id, cleaned_key
            )
            pending.append(_build_child(row, cleaned_key, value, kind, files))
        else:
            result.data[cleaned_key] = value

    if pending:
        result.children = list(await asyncio.gather(*pending))
    return result


async def _build_child(
    row: ClassifiedRow,
    cleaned_key: str,
    raw: Any,
    kind: MappedField,
    files: FileMaterializer,
) -> ChildNode:
    local_files = None
    if kind.is_file:
        local_files = await resolve_attachments(raw, files, field_name=cleaned_key)
    return build_child_node(row, cleaned_key, raw, kind.tag, local_files)
