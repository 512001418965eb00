"""Fan-out of telemetry events to text streams.

Events are written in either human-readable or JSONL format to one or more
destinations. ``EventSink`` is safe for concurrent use: each event is
rendered and written to every stream while holding a single lock, so lines
from concurrent emitters never interleave.
"""

from __future__ import annotations

import json
import threading
from dataclasses import replace
from enum import Enum
from typing import TextIO

from telenoise.actions.base import EmitFn
from telenoise.telemetry.event import TelemetryEvent
from telenoise.utils import utc_now

__all__ = ["OutputFormat", "EventSink", "render_human", "render_jsonl"]


class OutputFormat(str, Enum):
    """Serialization format of the telemetry stream."""

    HUMAN = "human"
    JSONL = "jsonl"

    def __str__(self) -> str:
        return self.value


def render_jsonl(event: TelemetryEvent) -> str:
    """Render *event* as one JSON line (without the trailing newline)."""
    try:
        return json.dumps(event.to_dict(), ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        return json.dumps({"error": f"failed to marshal event: {e}"})


def render_human(event: TelemetryEvent) -> str:
    """Render *event* as human-readable text (possibly several lines).

    Format: ``[+|!] [HH:MM:SS] [category/module] message`` followed by an
    indented ``error:`` line and one indented line per detail.
    """
    status = "+" if event.success else "!"
    clock = event.timestamp.strftime("%H:%M:%S") if event.timestamp else "--:--:--"
    lines = [f"[{status}] [{clock}] [{event.category}/{event.module}] {event.message}"]
    if event.error:
        lines.append(f"    error: {event.error}")
    for key, value in (event.details or {}).items():
        lines.append(f"    {key}: {value}")
    return "\n".join(lines)


class EventSink:
    """Thread-safe writer of telemetry events to one or more streams.

    Attributes
    ----------
    format : OutputFormat
        Serialization format.
    streams : list[TextIO]
        Destinations; every event is written to each of them.
    """

    def __init__(self, format: OutputFormat | str, *streams: TextIO) -> None:
        """Initialize sink.

        Parameters
        ----------
        format : OutputFormat | str
            "human" or "jsonl".
        *streams : TextIO
            Destinations to write to.
        """
        self.format = OutputFormat(format)
        self.streams = list(streams)
        self._lock = threading.Lock()

    def emit(self, event: TelemetryEvent) -> None:
        """Serialise *event* and write it to every stream.

        A missing timestamp is set to the emission time.
        """
        if event.timestamp is None:
            event = replace(event, timestamp=utc_now())

        if self.format is OutputFormat.JSONL:
            text = render_jsonl(event)
        else:
            text = render_human(event)

        with self._lock:
            for stream in self.streams:
                stream.write(text + "\n")
                stream.flush()

    def emit_func(self) -> EmitFn:
        """Return an emit callable bound to this sink."""
        return self.emit
