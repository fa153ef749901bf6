"""Async Airtable REST client.

Only the read path the pipeline needs is implemented: list every record of a
table (optionally filtered by a view), following Airtable's ``offset``
pagination until the last page.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from airtable_source.client.models import Record
from airtable_source.config import settings


class RowSource(Protocol):
    """Anything that can list the records of one table."""

    async def select_all(
        self, base_id: str, table_name: str, view: str = ""
    ) -> list[Record]: ...


class AirtableClient:
    """Thin wrapper around ``httpx.AsyncClient`` for the Airtable API.

    Use as an async context manager so the underlying connection pool is
    closed when the run finishes::

        async with AirtableClient(api_key) as client:
            records = await client.select_all("appXXXX", "Recipes")
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("API key is required to connect to Airtable")
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.airtable_api_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> AirtableClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def select_all(
        self, base_id: str, table_name: str, view: str = ""
    ) -> list[Record]:
        """Return every record of *table_name* in API order.

        Raises:
            httpx.HTTPStatusError: If Airtable returns a 4xx/5xx status code.
        """
        path = f"/{quote(base_id, safe='')}/{quote(table_name, safe='')}"
        params: dict[str, str] = {}
        if view:
            params["view"] = view

        records: list[Record] = []
        while True:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            page = response.json()
            records.extend(
                Record.from_api(table_name, item) for item in page.get("records", [])
            )
            offset = page.get("offset")
            if not offset:
                break
            params["offset"] = offset

        return records
