"""Timestamp utilities for telenoise.

Telemetry events carry ISO8601 timestamps; audit records carry epoch
milliseconds. Both are always UTC.
"""

from datetime import UTC, datetime

__all__ = ["utc_now", "format_iso", "epoch_ms"]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def format_iso(moment: datetime) -> str:
    """Format *moment* as ISO8601 UTC with a "Z" suffix.

    Parameters
    ----------
    moment : datetime
        Datetime to format. Naive datetimes are assumed to be UTC.

    Returns
    -------
    str
        ISO8601 timestamp (e.g., "2026-02-03T12:34:56.123456Z").
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def epoch_ms(moment: datetime) -> int:
    """Convert *moment* to integer milliseconds since the Unix epoch."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return int(moment.timestamp() * 1000)
