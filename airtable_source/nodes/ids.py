"""Deterministic node identifiers and content digests.

Every id is a pure function of its seed string, so running the pipeline
twice against unchanged Airtable data yields identical ids and digests.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from typing import Any

NODE_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "airtable-source")


def create_node_id(seed: str) -> str:
    """Return a UUIDv5 string for *seed* under the package namespace."""
    return str(uuid.uuid5(NODE_ID_NAMESPACE, seed))


def parent_node_id(record_id: str) -> str:
    return create_node_id(f"Airtable_{record_id}")


def field_node_id(record_id: str, cleaned_key: str) -> str:
    return create_node_id(f"AirtableField_{record_id}_{cleaned_key}")


def file_node_id(url: str) -> str:
    return create_node_id(f"RemoteFile_{url}")


def canonical_json(value: Any) -> str:
    """Serialise *value* with sorted keys so equal data gives equal text."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


def content_digest(value: Any) -> str:
    """MD5 hex digest of :func:`canonical_json` (*value*)."""
    return hashlib.md5(canonical_json(value).encode("utf-8")).hexdigest()
