"""Access to the JSON Schemas shipped with telenoise."""

import json
from functools import lru_cache
from importlib.resources import files
from typing import Any

__all__ = ["SCHEMA_NAMES", "load_schema"]

SCHEMA_NAMES = ("audit_record", "telemetry_event", "scenario")


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load a packaged JSON Schema by short name.

    Parameters
    ----------
    name : str
        One of ``SCHEMA_NAMES`` (e.g., "scenario").

    Returns
    -------
    dict[str, Any]
        Parsed schema document.

    Raises
    ------
    ValueError
        If *name* is not a known schema.
    """
    if name not in SCHEMA_NAMES:
        raise ValueError(f"Unknown schema {name!r}. Available: {', '.join(SCHEMA_NAMES)}")
    resource = files("telenoise") / "schemas" / f"{name}.schema.json"
    return json.loads(resource.read_text(encoding="utf-8"))
