"""Node store package.

Public re-exports so callers can write::

    from airtable_source.store import get_connection, init_db, SqliteSink
"""

from airtable_source.store.connection import get_connection
from airtable_source.store.migrations import init_db
from airtable_source.store.sinks import (
    MemorySink,
    MemoryStatus,
    NodeSink,
    SqliteSink,
    SqliteStatus,
    StatusRecorder,
)

__all__ = [
    "get_connection",
    "init_db",
    "MemorySink",
    "MemoryStatus",
    "NodeSink",
    "SqliteSink",
    "SqliteStatus",
    "StatusRecorder",
]
