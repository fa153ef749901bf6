"""Shared fakes for the pipeline tests.

``FakeRowSource`` stands in for the Airtable client and ``FakeFiles`` for
the attachment downloader, so most tests never touch the network.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from airtable_source.client.models import Record
from airtable_source.config import settings
from airtable_source.nodes.ids import file_node_id
from airtable_source.nodes.models import FileNode, NodeInternal


class FakeRowSource:
    """Returns canned records per ``(base_id, table_name)``."""

    def __init__(self, tables: dict[tuple[str, str], list[dict[str, Any]]]) -> None:
        self.tables = tables
        self.calls: list[tuple[str, str, str]] = []

    async def select_all(self, base_id: str, table_name: str, view: str = "") -> list[Record]:
        self.calls.append((base_id, table_name, view))
        await asyncio.sleep(0)
        return [
            Record(
                id=r["id"],
                table_name=table_name,
                fields=dict(r.get("fields", {})),
                created_time=r.get("createdTime", "2024-01-01T00:00:00.000Z"),
            )
            for r in self.tables.get((base_id, table_name), [])
        ]


class FakeFiles:
    """Resolves URLs to file nodes; URLs listed in *failing* raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.requested: list[str] = []

    async def create_remote_file_node(self, url: str) -> FileNode:
        self.requested.append(url)
        await asyncio.sleep(0)
        if url in self.failing:
            raise RuntimeError(f"download failed: {url}")
        return FileNode(
            id=file_node_id(url),
            url=url,
            path=f"/tmp/{url.rsplit('/', 1)[-1]}",
            name=url.rsplit("/", 1)[-1],
            ext="",
            size=0,
            internal=NodeInternal(type="File", content_digest="0" * 32),
        )


@pytest.fixture()
def fake_files() -> FakeFiles:
    return FakeFiles()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep every test away from the real workspace and environment key."""
    monkeypatch.setattr(settings, "workspace_dir", tmp_path / "workspace")
    monkeypatch.setattr(settings, "airtable_api_key", "")
    monkeypatch.setattr(settings, "airtable_api_url", "https://api.airtable.test/v0")
    return settings
