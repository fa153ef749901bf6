"""Centralised settings for airtable-source.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Per-run pipeline options (tables, mapping, concurrency …) live in
:mod:`airtable_source.options`; this module only covers process-level knobs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("AIRTABLE_SOURCE_WORKSPACE", Path.home() / ".airtable_source")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite node store."""
        return self.workspace_dir / "nodes.db"

    @property
    def files_dir(self) -> Path:
        """Directory where downloaded attachments are cached."""
        return self.workspace_dir / "files"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "store" / "schema.sql"

    options_path: Path = field(
        default_factory=lambda: Path(
            os.environ.get("AIRTABLE_SOURCE_OPTIONS", "airtable-source.json")
        )
    )

    # ------------------------------------------------------------------
    # Airtable API
    # ------------------------------------------------------------------
    airtable_api_key: str = field(
        default_factory=lambda: os.environ.get("AIRTABLE_API_KEY", "")
    )
    airtable_api_url: str = field(
        default_factory=lambda: os.environ.get(
            "AIRTABLE_API_URL", "https://api.airtable.com/v0"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    # Airtable documents 5 requests/sec for its API and nothing for its
    # attachment servers, so 5 concurrent rows is the default.
    default_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("AIRTABLE_CONCURRENCY", "5"))
    )


# Module-level singleton, import this everywhere:
#   from airtable_source.config import settings
settings = Settings()
