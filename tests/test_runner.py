"""End-to-end tests for the pipeline orchestrator.

The Airtable client and attachment downloader are replaced by the fakes
from ``conftest``; the Airtable API itself is mocked with ``respx`` where
the real client is exercised.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from airtable_source.nodes.ids import field_node_id, file_node_id, parent_node_id
from airtable_source.nodes.models import ChildNode, ParentNode
from airtable_source.options import SourceOptions, TableConfig
from airtable_source.pipeline import runner
from airtable_source.pipeline.runner import source_nodes
from airtable_source.store.sinks import MemorySink, MemoryStatus

from conftest import FakeFiles, FakeRowSource

_RECIPES = [
    {
        "id": "recA",
        "fields": {
            "Name": "Soup",
            "Main Ingredient": ["recX", "recY"],
            "Notes": "# Soup\nHot.",
            "Cover Image": [
                {"url": "https://dl.test/a.png"},
                {"url": "https://dl.test/broken.png"},
            ],
        },
    },
    {"id": "recB", "fields": {"Name": "Salad"}},
]
_INGREDIENTS = [{"id": "recX", "fields": {"Name": "Leek"}}, {"id": "recY", "fields": {"Name": "Potato"}}]


def _source() -> FakeRowSource:
    return FakeRowSource(
        {
            ("app1", "Recipes"): _RECIPES,
            ("app1", "Ingredients"): _INGREDIENTS,
        }
    )


def _options(**overrides) -> SourceOptions:
    tables = overrides.pop(
        "tables",
        [
            TableConfig(
                "app1",
                "Recipes",
                query_name="Recipes",
                mapping={"Notes": "text/markdown", "Cover_Image": "fileNode"},
                table_links=["Main_Ingredient"],
            ),
            TableConfig("app1", "Ingredients", query_name="Ingredients"),
        ],
    )
    return SourceOptions(api_key="key123", tables=tables, **overrides)


def _run(options, source=None, files=None):
    sink, status = MemorySink(), MemoryStatus()
    result = asyncio.run(
        source_nodes(
            options,
            sink,
            status,
            row_source=source or _source(),
            files=files or FakeFiles(failing={"https://dl.test/broken.png"}),
        )
    )
    return result, sink, status


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

class TestSourceNodes:
    def test_emits_parent_and_child_nodes(self) -> None:
        result, sink, status = _run(_options())

        assert not result.halted
        assert result.tables_fetched == 2
        assert result.rows == 4
        parents = [n for n in sink.nodes if isinstance(n, ParentNode)]
        children = [n for n in sink.nodes if isinstance(n, ChildNode)]
        assert len(parents) == 4
        assert len(children) == 2
        assert result.nodes_created == 6
        assert "lastFetched" in status.status

    def test_row_a_payload(self) -> None:
        _, sink, _ = _run(_options())
        nodes = sink.by_id()
        parent = nodes[parent_node_id("recA")]

        assert parent.data == {
            "Name": "Soup",
            "Main_Ingredient___NODE": [parent_node_id("recX"), parent_node_id("recY")],
            "Notes___NODE": field_node_id("recA", "Notes"),
            "Cover_Image___NODE": field_node_id("recA", "Cover_Image"),
        }
        assert sorted(parent.children) == sorted(
            [field_node_id("recA", "Notes"), field_node_id("recA", "Cover_Image")]
        )
        assert parent.query_name == "Recipes"
        assert parent.table == "Recipes"

    def test_linked_rows_resolve_to_emitted_parents(self) -> None:
        _, sink, _ = _run(_options())
        nodes = sink.by_id()
        for ref in nodes[parent_node_id("recA")].data["Main_Ingredient___NODE"]:
            assert isinstance(nodes[ref], ParentNode)

    def test_file_field_degrades_to_partial_local_files(self) -> None:
        _, sink, _ = _run(_options())
        cover = sink.by_id()[field_node_id("recA", "Cover_Image")]
        assert cover.local_files == [file_node_id("https://dl.test/a.png")]
        assert cover.parent == parent_node_id("recA")

    def test_parent_emitted_before_its_children(self) -> None:
        _, sink, _ = _run(_options())
        order = [n.id for n in sink.nodes]
        parent_at = order.index(parent_node_id("recA"))
        for child_id in (field_node_id("recA", "Notes"), field_node_id("recA", "Cover_Image")):
            assert order.index(child_id) > parent_at

    def test_idempotent_ids_and_digests(self) -> None:
        _, first, _ = _run(_options())
        _, second, _ = _run(_options())

        def fingerprint(sink):
            return sorted((n.id, n.internal.content_digest) for n in sink.nodes)

        assert fingerprint(first) == fingerprint(second)

    def test_separate_node_type(self) -> None:
        tables = [TableConfig("app1", "Ingredients", query_name="Pantry Items", separate_node_type=True)]
        _, sink, _ = _run(_options(tables=tables))
        assert {n.internal.type for n in sink.nodes} == {"AirtablePantryItems"}

    def test_view_is_passed_to_source(self) -> None:
        source = _source()
        _run(_options(tables=[TableConfig("app1", "Ingredients", table_view="Grid")]), source=source)
        assert source.calls == [("app1", "Ingredients", "Grid")]


# ---------------------------------------------------------------------------
# Soft halts and table skips
# ---------------------------------------------------------------------------

class TestConfigurationErrors:
    def test_missing_credential_halts(self, capsys) -> None:
        options = _options()
        options.api_key = None
        source = _source()

        result, sink, status = _run(options, source=source)

        assert result.halted
        assert sink.nodes == []
        assert status.status == {}
        assert source.calls == []
        assert capsys.readouterr().out.count("[warn]") == 1

    def test_empty_table_list_halts(self, capsys) -> None:
        result, sink, _ = _run(_options(tables=[]))

        assert result.halted
        assert sink.nodes == []
        assert capsys.readouterr().out.count("[warn]") == 1

    def test_non_callable_clean_key_halts_before_fetch(self, capsys) -> None:
        source = _source()
        result, sink, _ = _run(_options(clean_key="nope"), source=source)

        assert result.halted
        assert "clean_key" in result.reason
        assert source.calls == []
        assert sink.nodes == []

    def test_invalid_concurrency_halts(self) -> None:
        result, sink, _ = _run(_options(concurrency=0))
        assert result.halted
        assert sink.nodes == []

    def test_environment_key_is_used_with_notice(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(runner.settings, "airtable_api_key", "env-key")
        options = _options()
        options.api_key = None

        result, sink, _ = _run(options)

        assert not result.halted
        assert sink.nodes
        assert "AIRTABLE_API_KEY" in capsys.readouterr().out

    def test_dirty_table_is_skipped_others_proceed(self, capsys) -> None:
        tables = [
            TableConfig("app1", "Recipes", mapping={"Cover Image": "fileNode"}, table_links=["Main Ingredient"]),
            TableConfig("app1", "Ingredients"),
        ]
        source = _source()
        result, sink, _ = _run(_options(tables=tables), source=source)

        assert result.tables_skipped == ["app1/Recipes"]
        assert result.tables_fetched == 1
        assert source.calls == [("app1", "Ingredients", "")]
        assert {n.record_id for n in sink.nodes} == {"recX", "recY"}
        out = capsys.readouterr().out
        assert "Cover Image" in out and "Main Ingredient" in out
        assert "Recipes" in out and "app1" in out


# ---------------------------------------------------------------------------
# Failures and concurrency
# ---------------------------------------------------------------------------

class _FailingSource:
    async def select_all(self, base_id, table_name, view=""):
        raise httpx.HTTPStatusError(
            "boom",
            request=httpx.Request("GET", "https://api.airtable.test"),
            response=httpx.Response(500),
        )


class TestFailuresAndConcurrency:
    def test_fetch_error_propagates(self) -> None:
        with pytest.raises(httpx.HTTPStatusError):
            _run(_options(), source=_FailingSource())

    def test_emission_failure_cancels_remaining_rows(self) -> None:
        rows = [
            {"id": f"rec{i}", "fields": {"Doc": [{"url": f"https://dl.test/{i}.png"}]}}
            for i in range(6)
        ]
        source = FakeRowSource({("app1", "Docs"): rows})
        failing_id = parent_node_id("rec0")

        class SlowFiles(FakeFiles):
            async def create_remote_file_node(self, url):
                if not url.endswith("/0.png"):
                    await asyncio.sleep(0.01)
                return await super().create_remote_file_node(url)

        class BrokenSink(MemorySink):
            def __init__(self) -> None:
                super().__init__()
                self.failed = False
                self.late: list[str] = []

            def create_node(self, node) -> None:
                if node.id == failing_id:
                    self.failed = True
                    raise RuntimeError("sink unavailable")
                if self.failed:
                    self.late.append(node.id)
                super().create_node(node)

        sink = BrokenSink()
        tables = [TableConfig("app1", "Docs", mapping={"Doc": "fileNode"})]

        async def host() -> None:
            with pytest.raises(RuntimeError):
                await source_nodes(
                    _options(tables=tables, concurrency=6),
                    sink,
                    MemoryStatus(),
                    row_source=source,
                    files=SlowFiles(),
                )
            # keep the loop alive long enough for any orphaned row to finish
            await asyncio.sleep(0.05)

        asyncio.run(host())

        assert sink.failed
        assert sink.late == []

    def test_fetch_failure_cancels_other_tables(self) -> None:
        class PartlyBrokenSource:
            def __init__(self) -> None:
                self.finished: list[str] = []

            async def select_all(self, base_id, table_name, view=""):
                if table_name == "Broken":
                    raise RuntimeError("fetch failed")
                await asyncio.sleep(0.02)
                self.finished.append(table_name)
                return []

        source = PartlyBrokenSource()
        tables = [TableConfig("app1", "Slow"), TableConfig("app1", "Broken")]

        async def host() -> None:
            with pytest.raises(RuntimeError):
                await source_nodes(
                    _options(tables=tables),
                    MemorySink(),
                    MemoryStatus(),
                    row_source=source,
                    files=FakeFiles(),
                )
            await asyncio.sleep(0.05)

        asyncio.run(host())

        assert source.finished == []

    def test_row_concurrency_is_bounded(self) -> None:
        rows = [
            {"id": f"rec{i}", "fields": {"Doc": [{"url": f"https://dl.test/{i}.png"}]}}
            for i in range(12)
        ]
        source = FakeRowSource({("app1", "Docs"): rows})
        active = 0
        peak = 0

        class SlowFiles(FakeFiles):
            async def create_remote_file_node(self, url):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return await super().create_remote_file_node(url)

        tables = [TableConfig("app1", "Docs", mapping={"Doc": "fileNode"})]
        result, sink, _ = _run(_options(tables=tables, concurrency=3), source=source, files=SlowFiles())

        assert result.rows == 12
        assert peak <= 3
        assert len(sink.nodes) == 24


class TestRealClient:
    @respx.mock
    def test_uses_airtable_client_when_no_source_given(self) -> None:
        respx.get("https://api.airtable.test/v0/app1/Ingredients").mock(
            return_value=httpx.Response(200, json={"records": _INGREDIENTS})
        )
        sink, status = MemorySink(), MemoryStatus()
        options = _options(tables=[TableConfig("app1", "Ingredients")])

        result = asyncio.run(source_nodes(options, sink, status))

        assert result.rows == 2
        assert {n.record_id for n in sink.nodes} == {"recX", "recY"}
