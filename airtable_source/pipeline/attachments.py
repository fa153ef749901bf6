"""Resolve file-mapped attachment fields to local file nodes."""

from __future__ import annotations

import asyncio
from typing import Any

from airtable_source.files.fetcher import FileMaterializer

FILE_NODE = "fileNode"


async def resolve_attachments(
    raw: Any,
    files: FileMaterializer,
    *,
    field_name: str = "",
) -> list[str]:
    """Materialise every attachment URL in *raw* concurrently.

    Each failed download is printed and dropped; the others are kept in
    their original order.

    Args:
        raw: The raw field value, a list of Airtable attachment objects
            each carrying a ``url``.
        files: Materializer that turns a URL into a local file node.
        field_name: Cleaned field name, only used in warnings.

    Returns:
        Ids of the local file nodes (possibly empty).
    """
    if not isinstance(raw, list):
        print(
            f"[warn] {field_name!r} is mapped to {FILE_NODE} but its value is "
            f"not a list of attachments; no local files linked."
        )
        return []

    results = await asyncio.gather(
        *(_resolve_one(item, files) for item in raw),
        return_exceptions=True,
    )

    local_files: list[str] = []
    for item, result in zip(raw, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            url = item.get("url") if isinstance(item, dict) else item
            print(
                f"[files] ✗ {field_name!r}: could not fetch attachment "
                f"{url!r}: {result}"
            )
            continue
        local_files.append(result)
    return local_files


async def _resolve_one(item: Any, files: FileMaterializer) -> str:
    if not isinstance(item, dict) or not item.get("url"):
        raise ValueError(f"attachment has no url: {item!r}")
    node = await files.create_remote_file_node(item["url"])
    return node.id
