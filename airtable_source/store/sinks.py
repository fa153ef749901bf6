"""Node sinks and status recorders.

The pipeline only talks to these two small protocols.  Embedders supply
their own; the CLI and API use the SQLite-backed pair, and tests use the
in-memory pair.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Protocol

from airtable_source.nodes.models import AnyNode
from airtable_source.store.nodes import upsert_node
from airtable_source.store.status import set_status


class NodeSink(Protocol):
    def create_node(self, node: AnyNode) -> None: ...


class StatusRecorder(Protocol):
    def set_status(self, payload: dict[str, Any]) -> None: ...


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class MemorySink:
    """Collects emitted nodes in a list, in emission order."""

    def __init__(self) -> None:
        self.nodes: list[AnyNode] = []

    def create_node(self, node: AnyNode) -> None:
        self.nodes.append(node)

    def by_id(self) -> dict[str, AnyNode]:
        return {n.id: n for n in self.nodes}


class MemoryStatus:
    def __init__(self) -> None:
        self.status: dict[str, Any] = {}

    def set_status(self, payload: dict[str, Any]) -> None:
        self.status.update(payload)


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

class SqliteSink:
    """Upserts emitted nodes into the ``nodes`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.written = 0
        self.unchanged = 0

    def create_node(self, node: AnyNode) -> None:
        if upsert_node(self.conn, node.to_dict()):
            self.written += 1
        else:
            self.unchanged += 1


class SqliteStatus:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def set_status(self, payload: dict[str, Any]) -> None:
        set_status(self.conn, payload)
