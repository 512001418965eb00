"""Telemetry event model.

One ``TelemetryEvent`` is created per observable operation an action
performs. Events are frozen; the helpers below return modified copies.
"""

from __future__ import annotations

import getpass
import os
import sys
from dataclasses import dataclass, replace
from datetime import datetime
from functools import lru_cache
from typing import Any

from telenoise.actions.base import ActionInfo, TechniqueRef
from telenoise.utils import format_iso

__all__ = [
    "SCHEMA_VERSION",
    "ProcessContext",
    "TelemetryEvent",
    "current_process_context",
    "new_event",
    "with_details",
    "with_error",
]

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class ProcessContext:
    """Identity of the process that emitted an event.

    Attributes
    ----------
    pid : int
        Process id.
    ppid : int
        Parent process id.
    executable : str
        Path of the running interpreter.
    username : str
        Login name, empty if it cannot be determined.
    """

    pid: int
    ppid: int
    executable: str
    username: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict."""
        return {
            "pid": self.pid,
            "ppid": self.ppid,
            "executable": self.executable,
            "username": self.username,
        }


def current_username() -> str:
    """Return the current login name, or "" if unavailable."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


@lru_cache(maxsize=1)
def _snapshot(pid: int) -> ProcessContext:
    return ProcessContext(
        pid=pid,
        ppid=os.getppid(),
        executable=sys.executable or "telenoise",
        username=current_username(),
    )


def current_process_context() -> ProcessContext:
    """Return the process context for the running process.

    The snapshot is cached per pid so forked children get their own.
    """
    return _snapshot(os.getpid())


@dataclass(frozen=True)
class TelemetryEvent:
    """Structured record emitted by an action for each operation it performs.

    Attributes
    ----------
    module : str
        Originating action name.
    category : str
        Originating action category.
    event_type : str
        Free-text event kind (e.g., "tcp_connect").
    success : bool
        Whether the operation succeeded.
    message : str
        Human message.
    details : dict[str, Any] | None
        Optional structured details.
    error : str | None
        Error text when the operation failed.
    techniques : tuple[TechniqueRef, ...]
        Technique references inherited from the action.
    process_context : ProcessContext | None
        Identity of the emitting process.
    timestamp : datetime | None
        Emission time; filled in by the sink when None.
    schema_version : str
        Event schema version.
    """

    module: str
    category: str
    event_type: str
    success: bool
    message: str
    details: dict[str, Any] | None = None
    error: str | None = None
    techniques: tuple[TechniqueRef, ...] = ()
    process_context: ProcessContext | None = None
    timestamp: datetime | None = None
    schema_version: str = SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation used by the JSONL stream."""
        data: dict[str, Any] = {
            "schema_version": self.schema_version,
            "timestamp": format_iso(self.timestamp) if self.timestamp else None,
            "module": self.module,
            "category": self.category,
            "event_type": self.event_type,
            "success": self.success,
            "message": self.message,
        }
        if self.details:
            data["details"] = self.details
        if self.error:
            data["error"] = self.error
        if self.techniques:
            data["mitre"] = [t.to_dict() for t in self.techniques]
        context = self.process_context or current_process_context()
        data["process_context"] = context.to_dict()
        return data


def new_event(info: ActionInfo, event_type: str, success: bool, message: str) -> TelemetryEvent:
    """Build an event pre-populated with action metadata and process context.

    Parameters
    ----------
    info : ActionInfo
        Metadata of the emitting action.
    event_type : str
        Event kind.
    success : bool
        Success flag.
    message : str
        Human message.

    Returns
    -------
    TelemetryEvent
        New event with no timestamp set.
    """
    return TelemetryEvent(
        module=info.name,
        category=str(info.category),
        event_type=event_type,
        success=success,
        message=message,
        techniques=info.techniques,
        process_context=current_process_context(),
    )


def with_details(event: TelemetryEvent, details: dict[str, Any]) -> TelemetryEvent:
    """Return a copy of *event* with *details* attached."""
    return replace(event, details=dict(details))


def with_error(event: TelemetryEvent, error: BaseException | str) -> TelemetryEvent:
    """Return a failed copy of *event* carrying *error*."""
    return replace(event, success=False, error=str(error))
