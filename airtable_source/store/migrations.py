"""Database initialisation.

``init_db(conn)`` is idempotent; safe to call on an existing database.  The
applied schema version is recorded in ``schema_version`` so a later layout
change can tell which databases predate it.
"""

from __future__ import annotations

import sqlite3

from airtable_source.config import settings

SCHEMA_VERSION = 1


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes and record :data:`SCHEMA_VERSION`.

    Every DDL statement in ``schema.sql`` uses ``IF NOT EXISTS`` so calling
    this multiple times on the same database is safe.
    """
    sql = settings.schema_path.read_text(encoding="utf-8")
    conn.executescript(sql)
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version  INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (strftime('%s', 'now'))
            )
            """
        )
        conn.execute(
            "INSERT OR IGNORE INTO schema_version(version) VALUES (?)",
            (SCHEMA_VERSION,),
        )


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest recorded schema version (0 on a fresh database)."""
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) FROM schema_version"
    ).fetchone()
    return row[0] if row else 0
