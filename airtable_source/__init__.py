"""airtable-source: turn Airtable rows into content-addressed nodes."""

from airtable_source.options import ConfigError, SourceOptions, TableConfig, load_options
from airtable_source.pipeline.runner import SourceResult, source_nodes

__all__ = [
    "ConfigError",
    "SourceOptions",
    "TableConfig",
    "load_options",
    "SourceResult",
    "source_nodes",
]
