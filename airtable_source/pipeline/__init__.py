"""Row → node pipeline package."""

from airtable_source.pipeline.builder import assemble_row, build_child_node
from airtable_source.pipeline.classifier import classify_field, classify_row
from airtable_source.pipeline.rows import ClassifiedRow, compose_row
from airtable_source.pipeline.runner import SourceResult, source_nodes

__all__ = [
    "assemble_row",
    "build_child_node",
    "classify_field",
    "classify_row",
    "ClassifiedRow",
    "compose_row",
    "SourceResult",
    "source_nodes",
]
