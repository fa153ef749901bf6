"""Plugin status record (last-write-wins key/value pairs)."""

from __future__ import annotations

import json
import sqlite3
from time import time
from typing import Any


def set_status(conn: sqlite3.Connection, payload: dict[str, Any]) -> None:
    """Merge *payload* into the status record; each key overwrites."""
    now = int(time())
    with conn:
        conn.executemany(
            """
            INSERT INTO plugin_status (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            [(key, json.dumps(value), now) for key, value in payload.items()],
        )


def get_status(conn: sqlite3.Connection) -> dict[str, Any]:
    rows = conn.execute("SELECT key, value FROM plugin_status ORDER BY key").fetchall()
    return {r["key"]: json.loads(r["value"]) for r in rows}
