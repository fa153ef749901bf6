"""Data models for the Airtable client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Record:
    """A single row as returned by the Airtable REST API."""

    id: str
    table_name: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_time: str = ""

    @classmethod
    def from_api(cls, table_name: str, payload: dict[str, Any]) -> Record:
        return cls(
            id=payload["id"],
            table_name=table_name,
            fields=dict(payload.get("fields") or {}),
            created_time=payload.get("createdTime", ""),
        )
