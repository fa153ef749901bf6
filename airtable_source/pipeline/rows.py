"""Rows tagged with their table configuration.

A fetched :class:`~airtable_source.client.models.Record` is never mutated;
:func:`compose_row` builds a new frozen :class:`ClassifiedRow` that carries
the merged fields and the table options the rest of the pipeline needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from airtable_source.client.models import Record
from airtable_source.nodes.ids import parent_node_id
from airtable_source.options import TableConfig


@dataclass(frozen=True)
class ClassifiedRow:
    record_id: str
    table_name: str
    created_time: str
    fields: dict[str, Any]
    table: TableConfig

    @property
    def query_name(self) -> Optional[str]:
        return self.table.query_name

    @property
    def node_id(self) -> str:
        return parent_node_id(self.record_id)

    def serialize(self) -> dict[str, Any]:
        """The whole row as plain data; the digest basis for its nodes."""
        return {
            "id": self.record_id,
            "createdTime": self.created_time,
            "table": self.table_name,
            "fields": self.fields,
            **self.table.to_dict(),
        }


def compose_row(record: Record, table: TableConfig) -> ClassifiedRow:
    """Overlay *record*'s fields on the table defaults (actual values win)."""
    return ClassifiedRow(
        record_id=record.id,
        table_name=record.table_name,
        created_time=record.created_time,
        fields={**table.default_values, **record.fields},
        table=table,
    )
