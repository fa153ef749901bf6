"""Remote attachment download & local file nodes."""

from airtable_source.files.fetcher import FileMaterializer, RemoteFileFetcher

__all__ = ["FileMaterializer", "RemoteFileFetcher"]
