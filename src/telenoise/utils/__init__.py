"""Common utility functions for telenoise."""

from telenoise.utils.schemas import SCHEMA_NAMES, load_schema
from telenoise.utils.timestamps import epoch_ms, format_iso, utc_now

__all__ = [
    "SCHEMA_NAMES",
    "epoch_ms",
    "format_iso",
    "load_schema",
    "utc_now",
]
