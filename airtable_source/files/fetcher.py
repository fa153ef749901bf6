"""Download remote attachments into the local file cache.

Each URL becomes a :class:`~airtable_source.nodes.models.FileNode` that is
also handed to the node sink, so mapped fields can link to it by id.
"""

from __future__ import annotations

import asyncio
import hashlib
import tempfile
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Protocol
from urllib.parse import unquote, urlparse

import httpx

from airtable_source.config import settings
from airtable_source.nodes.ids import file_node_id
from airtable_source.nodes.models import FileNode, NodeInternal
from airtable_source.store.sinks import NodeSink

_DEFAULT_HEADERS = {"User-Agent": "airtable-source/0.1 (+attachment fetcher)"}


class FileMaterializer(Protocol):
    async def create_remote_file_node(self, url: str) -> FileNode: ...


def _file_name(url: str) -> str:
    """Return the last path segment of *url*, or ``"file"`` if there is none."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    return name or "file"


def _write_cached(target: Path, body: bytes) -> None:
    """Write *body* to *target* via a sibling temp file and an atomic rename.

    A partially written download never appears under its final name, so the
    cache check in :meth:`RemoteFileFetcher.create_remote_file_node` only
    ever sees complete files.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=target.parent, prefix=".", suffix=".part", delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(body)
        tmp_path.replace(target)
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


class RemoteFileFetcher:
    """Materialise remote URLs under ``cache_dir`` and emit file nodes.

    Files are stored at ``<cache_dir>/<md5(url)>/<name>``; a file already on
    disk is not downloaded again.
    """

    def __init__(
        self,
        sink: NodeSink,
        cache_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.sink = sink
        self.cache_dir = Path(cache_dir or settings.files_dir)
        self._client = httpx.AsyncClient(
            headers=_DEFAULT_HEADERS,
            timeout=timeout if timeout is not None else settings.request_timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> RemoteFileFetcher:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_remote_file_node(self, url: str) -> FileNode:
        """Download *url* (unless cached), emit its node, and return it.

        Raises:
            httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
            httpx.TransportError: If the download fails at the network level.
        """
        name = _file_name(url)
        target = self.cache_dir / hashlib.md5(url.encode("utf-8")).hexdigest() / name

        if target.exists():
            body = await asyncio.to_thread(target.read_bytes)
        else:
            response = await self._client.get(url)
            response.raise_for_status()
            body = response.content
            await asyncio.to_thread(_write_cached, target, body)

        node = FileNode(
            id=file_node_id(url),
            url=url,
            path=str(target),
            name=PurePosixPath(name).stem,
            ext=PurePosixPath(name).suffix,
            size=len(body),
            internal=NodeInternal(
                type="File",
                content_digest=hashlib.md5(body).hexdigest(),
            ),
        )
        self.sink.create_node(node)
        return node
