"""Telemetry event model and emission sink.

Main Components
---------------
- TelemetryEvent: Immutable record of one operation an action performed
- EventSink: Concurrency-safe fan-out to human or JSONL streams
"""

from telenoise.telemetry.emitter import EventSink, OutputFormat, render_human, render_jsonl
from telenoise.telemetry.event import (
    SCHEMA_VERSION,
    ProcessContext,
    TelemetryEvent,
    current_process_context,
    new_event,
    with_details,
    with_error,
)

__all__ = [
    "SCHEMA_VERSION",
    "EventSink",
    "OutputFormat",
    "ProcessContext",
    "TelemetryEvent",
    "current_process_context",
    "new_event",
    "render_human",
    "render_jsonl",
    "with_details",
    "with_error",
]
