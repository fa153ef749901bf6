"""Airtable client package: paginated record listing."""

from airtable_source.client.airtable import AirtableClient, RowSource
from airtable_source.client.models import Record

__all__ = ["AirtableClient", "RowSource", "Record"]
