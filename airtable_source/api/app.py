"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``) and initialises the schema.  On
shutdown it closes the connection cleanly.

Routers
-------
    /nodes    read-only access to synced nodes
    /status   last-fetch status record
    /sync     run the pipeline against ``settings.options_path``
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from airtable_source.api.routers import nodes as nodes_router
from airtable_source.api.routers import sync as sync_router
from airtable_source.store import get_connection, init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="airtable-source",
        description=(
            "Serves the nodes built from Airtable rows and lets a build "
            "trigger a fresh sync."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(nodes_router.router, prefix="/nodes", tags=["nodes"])
    app.include_router(sync_router.router, tags=["sync"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn airtable_source.api.app:app --reload
app = create_app()
