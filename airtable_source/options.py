"""Per-run pipeline options.

Options arrive either as a plain dict (camelCase keys, the same shape the
JSON options file uses) or are built directly from Python.  Validation that
can fail softly raises :class:`ConfigError`; the runner decides whether that
halts the whole run or just skips one table.

Example options file::

    {
      "tables": [
        {
          "baseId": "appXXXXXXXXXXXXXX",
          "tableName": "Recipes",
          "tableView": "Published",
          "queryName": "Recipes",
          "mapping": {"Cover_Image": "fileNode", "Notes": "text/markdown"},
          "tableLinks": ["Ingredients"],
          "separateNodeType": true
        }
      ],
      "concurrency": 5
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from airtable_source.keys import CleanKey, default_clean_key, find_dirty_keys

DIRTY_WARNING = (
    "Field names within node data cannot have spaces. You do not need to "
    "change your column names within Airtable, but in the options you must "
    "always use the cleaned key."
)


class ConfigError(ValueError):
    """Raised for configuration problems that halt a run or skip a table."""


# ---------------------------------------------------------------------------
# Table configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TableConfig:
    base_id: str
    table_name: str
    table_view: str = ""
    query_name: Optional[str] = None
    default_values: dict[str, Any] = field(default_factory=dict)
    mapping: dict[str, str] = field(default_factory=dict)
    table_links: list[str] = field(default_factory=list)
    separate_node_type: bool = False
    separate_map_type: bool = False

    @property
    def label(self) -> str:
        """``<base>/<table>``, used in warnings and results."""
        return f"{self.base_id}/{self.table_name}"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TableConfig:
        """Build a table config from its camelCase options entry.

        Raises:
            ConfigError: If ``baseId`` or ``tableName`` is missing.
        """
        if not isinstance(raw, dict):
            raise ConfigError(f"Table entry must be an object, got {type(raw).__name__}")
        base_id = raw.get("baseId")
        table_name = raw.get("tableName")
        if not base_id or not table_name:
            raise ConfigError(
                f"Table entry requires both baseId and tableName: {raw!r}"
            )
        return cls(
            base_id=base_id,
            table_name=table_name,
            table_view=raw.get("tableView") or "",
            query_name=raw.get("queryName"),
            default_values=dict(raw.get("defaultValues") or {}),
            mapping=dict(raw.get("mapping") or {}),
            table_links=list(raw.get("tableLinks") or []),
            separate_node_type=bool(raw.get("separateNodeType", False)),
            separate_map_type=bool(raw.get("separateMapType", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseId": self.base_id,
            "tableName": self.table_name,
            "tableView": self.table_view,
            "queryName": self.query_name,
            "defaultValues": self.default_values,
            "mapping": self.mapping,
            "tableLinks": self.table_links,
            "separateNodeType": self.separate_node_type,
            "separateMapType": self.separate_map_type,
        }

    def dirty_key_warnings(self) -> list[str]:
        """Return one warning per option that uses uncleaned keys.

        An empty list means the table is safe to fetch.
        """
        warnings: list[str] = []
        dirty_mapping = find_dirty_keys(self.mapping)
        dirty_links = find_dirty_keys(self.table_links)
        if dirty_mapping:
            warnings.append(
                f"{DIRTY_WARNING}\nOn the {self.table_name} base {self.base_id} "
                f"'mapping', you must use the cleaned name for "
                f"{', '.join(dirty_mapping)}"
            )
        if dirty_links:
            warnings.append(
                f"{DIRTY_WARNING}\nOn the {self.table_name} base {self.base_id} "
                f"'tableLinks', you must use the cleaned name for "
                f"{', '.join(dirty_links)}"
            )
        return warnings


# ---------------------------------------------------------------------------
# Run options
# ---------------------------------------------------------------------------

@dataclass
class SourceOptions:
    api_key: Optional[str] = None
    tables: list[TableConfig] = field(default_factory=list)
    concurrency: Optional[int] = None
    clean_key: Optional[CleanKey] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SourceOptions:
        """Parse an options dict.

        ``tables`` may be missing or empty here; the runner reports that as
        a soft halt so an options file can be loaded and inspected first.

        Raises:
            ConfigError: If any table entry is malformed.
        """
        tables_raw = raw.get("tables") or []
        if not isinstance(tables_raw, list):
            raise ConfigError("tables must be a list of table entries")
        return cls(
            api_key=raw.get("apiKey"),
            tables=[TableConfig.from_dict(t) for t in tables_raw],
            concurrency=raw.get("concurrency"),
            clean_key=raw.get("cleanKey"),
        )


def load_options(path: Path | str) -> SourceOptions:
    """Read a JSON options file.

    Raises:
        ConfigError: If the file is missing, not valid JSON, or malformed.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Options file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Options file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Options file {path} must contain a JSON object")
    return SourceOptions.from_dict(raw)


# ---------------------------------------------------------------------------
# Run-time resolution
# ---------------------------------------------------------------------------

def resolve_concurrency(value: Any, default: int) -> int:
    """Return the row concurrency bound for a run.

    Raises:
        ConfigError: If *value* is set but not a positive integer.
    """
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"concurrency must be a positive integer, got {value!r}")
    return value


def resolve_clean_key(clean_key: Any) -> CleanKey:
    """Return the key cleaner for a run; ``None`` selects the default.

    Raises:
        ConfigError: If *clean_key* is neither ``None`` nor callable.
    """
    if clean_key is None:
        return default_clean_key
    if not callable(clean_key):
        raise ConfigError(
            "clean_key must be a function or None to use the default value"
        )
    return clean_key
