"""Structured audit logger for OCSF-aligned JSONL records.

Provides append-only audit logging to a JSONL file with a persistent file
handle. Each record is serialised to a complete line before the write lock
is taken, so concurrent emitters never interleave partial lines and a
record that cannot be serialised is dropped without affecting the others.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from telenoise.actions.base import ActionInfo, EmitFn, Params
from telenoise.audit.classify import LIFECYCLE, Classification, classify
from telenoise.audit.helpers import (
    current_actor,
    generate_correlation_id,
    get_package_version,
    techniques_to_attacks,
)
from telenoise.audit.models import (
    ActionUnmapped,
    Attack,
    AuditRecord,
    LifecycleData,
    LifecyclePhase,
    Metadata,
    Product,
    ScenarioUnmapped,
    Severity,
    Status,
)
from telenoise.telemetry.event import TelemetryEvent
from telenoise.utils import epoch_ms, utc_now

__all__ = ["AuditLogger", "EventCounter"]


class EventCounter:
    """Thread-safe counter of emitted events."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Add one and return the new count."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        """Current count."""
        with self._lock:
            return self._value


def _timing(data: LifecycleData) -> dict[str, int | None]:
    start = epoch_ms(data.start_time) if data.start_time else None
    end = epoch_ms(data.end_time) if data.end_time else None
    duration = end - start if start is not None and end is not None else None
    return {"start_time": start, "end_time": end, "duration": duration}


def _lifecycle_outcome(data: LifecycleData) -> tuple[Severity, Status]:
    if data.prereq_result == "fail":
        return Severity.LOW, Status.FAILURE
    if data.generate_error:
        return Severity.MEDIUM, Status.FAILURE
    return Severity.INFORMATIONAL, Status.SUCCESS


def _lifecycle_message(phase: LifecyclePhase, name: str, data: LifecycleData) -> str:
    if phase is LifecyclePhase.PREREQ_FAIL:
        return f"Module {name} prereq check failed: {data.prereq_error}"
    if phase is LifecyclePhase.DRY_RUN:
        if data.generate_error:
            return f"Module {name} dry-run failed: {data.generate_error}"
        return f"Module {name} dry-run completed"
    if data.generate_error:
        return f"Module {name} failed: {data.generate_error}"
    return f"Module {name} completed successfully ({data.events_emitted} events emitted)"


class AuditLogger:
    """OCSF JSONL audit logger with persistent file handle.

    Writes one record per line. Records are append-only and flushed after
    each write for durability. All records written by one logger share its
    correlation id.

    Attributes
    ----------
    log_path : Path
        Path to JSONL log file.
    version : str
        Product version stamped into record metadata.
    correlation_id : str
        Run correlation id, fixed for the logger's lifetime.
    """

    def __init__(
        self,
        log_path: Path | str,
        version: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        """Initialize audit logger and open file handle.

        Parameters
        ----------
        log_path : Path | str
            Path to JSONL log file. Parent directories are created.
        version : str | None, optional
            Product version, defaults to the installed package version.
        correlation_id : str | None, optional
            Correlation id, generated when not provided.
        """
        self.log_path = Path(log_path)
        self.version = version or get_package_version()
        self.correlation_id = correlation_id or generate_correlation_id()
        self._actor = current_actor()
        self._metadata = Metadata(
            product=Product(version=self.version),
            correlation_uid=self.correlation_id,
        )
        self._lock = threading.Lock()

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> AuditLogger:
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager and close file."""
        self.close()

    @property
    def closed(self) -> bool:
        """Whether the log file has been closed."""
        return self._file.closed

    def close(self) -> None:
        """Flush and close the log file handle. Later writes are ignored."""
        with self._lock:
            if not self._file.closed:
                self._file.flush()
                self._file.close()

    def log_event(self, event: TelemetryEvent, info: ActionInfo, params: Params) -> None:
        """Write one record for a telemetry event emitted by an action.

        Parameters
        ----------
        event : TelemetryEvent
            Emitted event.
        info : ActionInfo
            Metadata of the emitting action.
        params : Params
            Parameters the action ran with.
        """
        if event.success:
            severity, status = Severity.INFORMATIONAL, Status.SUCCESS
        else:
            severity, status = Severity.MEDIUM, Status.FAILURE

        record = self._record(
            classify(event.category, event.event_type),
            severity,
            status,
            event.message,
            attacks=techniques_to_attacks(info.techniques),
            unmapped=ActionUnmapped(
                module=info.name,
                module_category=str(info.category),
                privileges=str(info.privileges),
                params=dict(params),
            ),
        )
        self._write(record)

    def log_lifecycle(
        self,
        phase: LifecyclePhase | str,
        info: ActionInfo,
        params: Params,
        data: LifecycleData,
    ) -> None:
        """Write one record for an action lifecycle outcome.

        Parameters
        ----------
        phase : LifecyclePhase | str
            "module_prereq_fail", "module_dry_run", or "module_run".
        info : ActionInfo
            Metadata of the action.
        params : Params
            Parameters the action ran with.
        data : LifecycleData
            Timing and outcome of the run.
        """
        phase = LifecyclePhase(phase)
        severity, status = _lifecycle_outcome(data)

        record = self._record(
            LIFECYCLE,
            severity,
            status,
            _lifecycle_message(phase, info.name, data),
            **_timing(data),
            attacks=techniques_to_attacks(info.techniques),
            unmapped=ActionUnmapped(
                module=info.name,
                module_category=str(info.category),
                privileges=str(info.privileges),
                params=dict(params),
                dry_run=data.dry_run,
                prereq_result=data.prereq_result,
                prereq_error=data.prereq_error,
                events_emitted=data.events_emitted,
                cleanup_result=data.cleanup_result,
                cleanup_error=data.cleanup_error,
                scenario_name=data.scenario_name,
                scenario_file=data.scenario_file,
            ),
        )
        self._write(record)

    def log_scenario(self, name: str, path: str, data: LifecycleData) -> None:
        """Write one summary record for a scenario run.

        Parameters
        ----------
        name : str
            Scenario name.
        path : str
            Scenario file path.
        data : LifecycleData
            Step counts, timing, and scenario error (``generate_error``).
        """
        if data.steps_failed > 0 or data.generate_error:
            severity, status = Severity.MEDIUM, Status.FAILURE
        else:
            severity, status = Severity.INFORMATIONAL, Status.SUCCESS

        message = f'Scenario "{name}": {data.steps_passed}/{data.total_steps} steps passed'
        if data.generate_error:
            message += f": {data.generate_error}"

        record = self._record(
            LIFECYCLE,
            severity,
            status,
            message,
            **_timing(data),
            unmapped=ScenarioUnmapped(
                scenario_name=name,
                scenario_file=path,
                steps_passed=data.steps_passed,
                steps_failed=data.steps_failed,
                total_steps=data.total_steps,
                scenario_error=data.generate_error,
            ),
        )
        self._write(record)

    def wrap_emitter(
        self,
        emit: EmitFn,
        info: ActionInfo,
        params: Params,
        counter: EventCounter,
    ) -> EmitFn:
        """Wrap *emit* so every event is also counted and audited.

        Parameters
        ----------
        emit : EmitFn
            Downstream emitter (usually an ``EventSink``).
        info : ActionInfo
            Metadata of the emitting action.
        params : Params
            Parameters the action ran with.
        counter : EventCounter
            Counter incremented once per event.

        Returns
        -------
        EmitFn
            Emitter that forwards, counts, then writes one audit record.
        """

        def audited_emit(event: TelemetryEvent) -> None:
            emit(event)
            counter.increment()
            self.log_event(event, info, params)

        return audited_emit

    def _record(
        self,
        classification: Classification,
        severity: Severity,
        status: Status,
        message: str,
        start_time: int | None = None,
        end_time: int | None = None,
        duration: int | None = None,
        attacks: tuple[Attack, ...] = (),
        unmapped: ActionUnmapped | ScenarioUnmapped | None = None,
    ) -> AuditRecord:
        return AuditRecord(
            class_uid=classification.class_uid,
            class_name=classification.class_name,
            category_uid=classification.category_uid,
            category_name=classification.category_name,
            activity_id=classification.activity_id,
            activity_name=classification.activity_name,
            severity=severity,
            status=status,
            time=epoch_ms(utc_now()),
            message=message,
            metadata=self._metadata,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            actor=self._actor,
            attacks=attacks,
            unmapped=unmapped,
        )

    def _write(self, record: AuditRecord) -> None:
        """Serialise *record* and append it to the log.

        A record that cannot be serialised is dropped.
        """
        try:
            line = json.dumps(record.to_dict(), ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            return

        with self._lock:
            if self._file.closed:
                return
            self._file.write(line + "\n")
            self._file.flush()
