"""Pipeline orchestrator.

``source_nodes`` runs the whole connector:

    validate options → fetch every table → compose rows → classify + build
    child nodes → assemble + emit → record last-fetch status

Configuration problems never raise out of here; they print a warning and
either halt the run (credential, table list, concurrency, key cleaner) or
skip one table (uncleaned ``mapping`` / ``tableLinks`` keys).  Fetch and
node-emission errors propagate, and every other in-flight table or row is
cancelled first so nothing reaches the sink after the run has failed.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Iterable, Optional, TypeVar

from airtable_source.client.airtable import AirtableClient, RowSource
from airtable_source.config import settings
from airtable_source.files.fetcher import FileMaterializer, RemoteFileFetcher
from airtable_source.keys import CleanKey
from airtable_source.nodes.models import AnyNode
from airtable_source.options import (
    ConfigError,
    SourceOptions,
    TableConfig,
    resolve_clean_key,
    resolve_concurrency,
)
from airtable_source.pipeline.builder import assemble_row
from airtable_source.pipeline.classifier import classify_row
from airtable_source.pipeline.rows import ClassifiedRow, compose_row
from airtable_source.store.sinks import NodeSink, StatusRecorder

T = TypeVar("T")


@dataclass
class SourceResult:
    halted: bool = False
    reason: Optional[str] = None
    tables_fetched: int = 0
    tables_skipped: list[str] = field(default_factory=list)
    rows: int = 0
    nodes_created: int = 0


class _CountingSink:
    """Forwards to the real sink and counts nodes."""

    def __init__(self, sink: NodeSink) -> None:
        self._sink = sink
        self.count = 0

    def create_node(self, node: AnyNode) -> None:
        self._sink.create_node(node)
        self.count += 1


def _halt(reason: str) -> SourceResult:
    print(f"[warn] {reason}")
    return SourceResult(halted=True, reason=reason)


async def _gather_or_cancel(coros: Iterable[Awaitable[T]]) -> list[T]:
    """Run *coros* as tasks; if one fails, cancel the rest before raising."""
    tasks = [asyncio.create_task(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def resolve_api_key(api_key: Optional[str]) -> Optional[str]:
    """Return the explicit key, else fall back to ``AIRTABLE_API_KEY``."""
    if api_key:
        return api_key
    if settings.airtable_api_key:
        print(
            "[warn] Using AIRTABLE_API_KEY from the environment implicitly; "
            "set api_key in the options instead."
        )
        return settings.airtable_api_key
    return None


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

async def fetch_table(source: RowSource, table: TableConfig) -> list[ClassifiedRow]:
    """Fetch every record of *table* and tag each with the table options."""
    records = await source.select_all(table.base_id, table.table_name, table.table_view)
    return [compose_row(record, table) for record in records]


async def fetch_all(
    source: RowSource,
    tables: list[TableConfig],
    result: SourceResult,
) -> list[ClassifiedRow]:
    """Fetch all clean tables at once and flatten their rows in table order."""
    queue = []
    for table in tables:
        warnings = table.dirty_key_warnings()
        if warnings:
            for warning in warnings:
                print(f"[warn] {warning}")
            result.tables_skipped.append(table.label)
            continue
        queue.append(fetch_table(source, table))

    per_table = await _gather_or_cancel(queue)
    result.tables_fetched = len(per_table)
    return [row for rows in per_table for row in rows]


async def process_row(
    row: ClassifiedRow,
    clean_key: CleanKey,
    files: FileMaterializer,
    sink: NodeSink,
) -> None:
    classified = await classify_row(row, clean_key, files)
    assemble_row(row, classified.data, classified.children, sink)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def source_nodes(
    options: SourceOptions,
    sink: NodeSink,
    status: StatusRecorder,
    *,
    row_source: Optional[RowSource] = None,
    files: Optional[FileMaterializer] = None,
) -> SourceResult:
    """Pull every configured table and emit its nodes into *sink*.

    Args:
        options: Parsed run options.
        sink: Receives every parent, child and file node.
        status: Receives ``{"lastFetched": <iso timestamp>}`` when done.
        row_source: Override the Airtable client (tests, other backends).
        files: Override the attachment materializer.

    Returns:
        A :class:`SourceResult`.  ``halted`` is ``True`` when configuration
        stopped the run before anything was fetched.

    Raises:
        httpx.HTTPStatusError: If fetching a table fails.
    """
    api_key = resolve_api_key(options.api_key)
    if not api_key:
        return _halt("API key is required to connect to Airtable")

    if not options.tables:
        return _halt("tables is not defined in the airtable-source options")

    try:
        concurrency = resolve_concurrency(options.concurrency, settings.default_concurrency)
        clean_key = resolve_clean_key(options.clean_key)
    except ConfigError as exc:
        return _halt(str(exc))

    result = SourceResult()
    counting = _CountingSink(sink)

    async with AsyncExitStack() as stack:
        if row_source is None:
            row_source = await stack.enter_async_context(AirtableClient(api_key))
        if files is None:
            files = await stack.enter_async_context(RemoteFileFetcher(counting))

        started = time.perf_counter()
        rows = await fetch_all(row_source, options.tables, result)
        print(
            f"[fetch] fetched {len(rows)} rows from {len(options.tables)} tables "
            f"in {time.perf_counter() - started:.2f}s"
        )
        result.rows = len(rows)

        semaphore = asyncio.Semaphore(concurrency)

        async def bounded(row: ClassifiedRow) -> None:
            async with semaphore:
                await process_row(row, clean_key, files, counting)

        await _gather_or_cancel(bounded(row) for row in rows)

    status.set_status(
        {"lastFetched": datetime.now(timezone.utc).isoformat(timespec="milliseconds")}
    )
    result.nodes_created = counting.count
    print(f"[done] {result.nodes_created} nodes from {result.rows} rows")
    return result
