"""Sync and status endpoints.

Routes
------
GET  /status   The last-fetch status record
POST /sync     Run the pipeline with the options file from settings
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

import httpx
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from airtable_source.config import settings
from airtable_source.options import ConfigError, load_options
from airtable_source.pipeline.runner import source_nodes
from airtable_source.store.sinks import SqliteSink, SqliteStatus
from airtable_source.store.status import get_status

router = APIRouter()


class SyncResponse(BaseModel):
    halted: bool
    reason: Optional[str]
    tables_fetched: int
    tables_skipped: list[str]
    rows: int
    nodes_created: int
    nodes_written: int


@router.get("/status")
def status(request: Request) -> dict[str, Any]:
    return get_status(request.app.state.db)


@router.post("/sync", response_model=SyncResponse)
async def sync(request: Request) -> dict[str, Any]:
    """Run a full sync into the app's store.

    Returns 422 when the options halt the run and 502 when Airtable fails.
    """
    conn = request.app.state.db
    try:
        options = load_options(settings.options_path)
    except ConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    sink = SqliteSink(conn)
    try:
        result = await source_nodes(options, sink, SqliteStatus(conn))
    except httpx.HTTPError as exc:
        raise HTTPException(
            status_code=502, detail=f"Airtable sync failed: {exc}"
        ) from exc

    if result.halted:
        raise HTTPException(status_code=422, detail=result.reason)
    return {**asdict(result), "nodes_written": sink.written}
