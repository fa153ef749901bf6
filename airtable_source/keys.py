"""Field-name and type-name normalisation.

Airtable column names may contain spaces; node field names may not.  Every
field-name comparison in the pipeline goes through the *cleaned* key, both
for keys coming from Airtable and for keys in user options.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable

CleanKey = Callable[[str], str]

_TYPE_STRIP = re.compile(r"[ /+]")


def default_clean_key(key: str) -> str:
    """Replace every space in *key* with an underscore."""
    return key.replace(" ", "_")


def clean_type(value: str | None) -> str:
    """Strip spaces, slashes and plus signs so *value* can suffix a node type."""
    if not value:
        return ""
    return _TYPE_STRIP.sub("", value)


def is_dirty(key: str) -> bool:
    return " " in key


def find_dirty_keys(keys: Iterable[str]) -> list[str]:
    """Return the keys that are not in cleaned form, preserving order."""
    return [k for k in keys if is_dirty(k)]
