"""Data models for OCSF-aligned audit records.

Each audit record describes something telenoise itself did: which action
ran, its prerequisite and cleanup outcomes, the telemetry events it emitted,
and the ATT&CK techniques it exercised. Records are serialised with
``to_dict``, which omits optional fields that carry no value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

__all__ = [
    "OCSF_VERSION",
    "PRODUCT_NAME",
    "VENDOR_NAME",
    "LOG_NAME",
    "Severity",
    "Status",
    "LifecyclePhase",
    "LifecycleData",
    "Product",
    "Metadata",
    "Actor",
    "Attack",
    "ActionUnmapped",
    "ScenarioUnmapped",
    "AuditRecord",
]

OCSF_VERSION = "1.7.0"
PRODUCT_NAME = "Telenoise"
VENDOR_NAME = "telenoise"
LOG_NAME = "audit"


class Severity(IntEnum):
    """OCSF severity ids used by telenoise."""

    INFORMATIONAL = 1
    LOW = 2
    MEDIUM = 3

    @property
    def label(self) -> str:
        return self.name.title()


class Status(IntEnum):
    """OCSF status ids used by telenoise."""

    SUCCESS = 1
    FAILURE = 2

    @property
    def label(self) -> str:
        return self.name.title()


class LifecyclePhase(str, Enum):
    """Kind of lifecycle record written by the orchestrator."""

    PREREQ_FAIL = "module_prereq_fail"
    DRY_RUN = "module_dry_run"
    RUN = "module_run"

    def __str__(self) -> str:
        return self.value


@dataclass
class LifecycleData:
    """Timing and outcome of one action run or scenario run.

    Filled in incrementally by the orchestrator, then handed to the audit
    logger once to produce exactly one record.

    Attributes
    ----------
    start_time : datetime | None
        When the run started.
    end_time : datetime | None
        When the run finished.
    prereq_result : str
        "pass" or "fail", empty if prerequisites were not checked.
    prereq_error : str
        Prerequisite failure text.
    generate_error : str
        Generate failure text; for scenarios, the scenario error.
    events_emitted : int
        Number of telemetry events emitted.
    cleanup_result : str
        "ok" or "error", empty if cleanup did not run.
    cleanup_error : str
        Cleanup failure text.
    dry_run : bool
        Whether the run was a dry run.
    scenario_name : str
        Enclosing scenario name, if any.
    scenario_file : str
        Enclosing scenario file, if any.
    steps_passed : int
        Scenario steps that passed.
    steps_failed : int
        Scenario steps that failed.
    total_steps : int
        Scenario steps declared.
    """

    start_time: datetime | None = None
    end_time: datetime | None = None
    prereq_result: str = ""
    prereq_error: str = ""
    generate_error: str = ""
    events_emitted: int = 0
    cleanup_result: str = ""
    cleanup_error: str = ""
    dry_run: bool = False
    scenario_name: str = ""
    scenario_file: str = ""
    steps_passed: int = 0
    steps_failed: int = 0
    total_steps: int = 0


def _compact(data: dict[str, Any], keep: tuple[str, ...] = ()) -> dict[str, Any]:
    """Drop keys whose value is None, empty, or zero, except those in *keep*."""
    return {k: v for k, v in data.items() if k in keep or v not in (None, "", 0, {}, [])}


@dataclass(frozen=True)
class Product:
    """Tool that produced the record."""

    version: str
    name: str = PRODUCT_NAME
    vendor_name: str = VENDOR_NAME

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version, "vendor_name": self.vendor_name}


@dataclass(frozen=True)
class Metadata:
    """OCSF metadata embedded in every record.

    Attributes
    ----------
    product : Product
        Producing tool.
    correlation_uid : str
        Run correlation id shared by every record of one logger.
    version : str
        OCSF schema version.
    log_name : str
        Log name.
    """

    product: Product
    correlation_uid: str = ""
    version: str = OCSF_VERSION
    log_name: str = LOG_NAME

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "product": self.product.to_dict(),
            "log_name": self.log_name,
        }
        if self.correlation_uid:
            data["correlation_uid"] = self.correlation_uid
        return data


@dataclass(frozen=True)
class Actor:
    """Process that performed the audited work."""

    pid: int
    name: str
    user: str = ""

    def to_dict(self) -> dict[str, Any]:
        process: dict[str, Any] = {"pid": self.pid, "name": self.name}
        if self.user:
            process["user"] = {"name": self.user}
        return {"process": process}


@dataclass(frozen=True)
class Attack:
    """ATT&CK technique, with optional sub-technique, exercised by an action."""

    technique_uid: str
    technique_name: str = ""
    sub_technique_uid: str = ""
    sub_technique_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "technique": _compact({"uid": self.technique_uid, "name": self.technique_name}),
        }
        if self.sub_technique_uid:
            data["sub_technique"] = _compact(
                {"uid": self.sub_technique_uid, "name": self.sub_technique_name}
            )
        return data


@dataclass(frozen=True)
class ActionUnmapped:
    """Action-specific fields with no direct OCSF mapping."""

    module: str
    module_category: str
    privileges: str
    params: dict[str, str] = field(default_factory=dict)
    dry_run: bool = False
    prereq_result: str = ""
    prereq_error: str = ""
    events_emitted: int = 0
    cleanup_result: str = ""
    cleanup_error: str = ""
    scenario_name: str = ""
    scenario_file: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "module": self.module,
                "module_category": self.module_category,
                "params": dict(self.params),
                "privileges": self.privileges,
                "dry_run": self.dry_run,
                "prereq_result": self.prereq_result,
                "prereq_error": self.prereq_error,
                "events_emitted": self.events_emitted,
                "cleanup_result": self.cleanup_result,
                "cleanup_error": self.cleanup_error,
                "scenario_name": self.scenario_name,
                "scenario_file": self.scenario_file,
            },
            keep=("module", "module_category", "privileges", "dry_run"),
        )


@dataclass(frozen=True)
class ScenarioUnmapped:
    """Scenario summary fields with no direct OCSF mapping."""

    scenario_name: str
    scenario_file: str
    steps_passed: int
    steps_failed: int
    total_steps: int
    scenario_error: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scenario_name": self.scenario_name,
            "scenario_file": self.scenario_file,
            "steps_passed": self.steps_passed,
            "steps_failed": self.steps_failed,
            "total_steps": self.total_steps,
        }
        if self.scenario_error:
            data["scenario_error"] = self.scenario_error
        return data


@dataclass(frozen=True)
class AuditRecord:
    """One OCSF 1.7.0-aligned audit log entry.

    Attributes
    ----------
    class_uid, class_name, category_uid, category_name : int | str
        OCSF classification.
    activity_id, activity_name : int | str
        OCSF activity.
    severity : Severity
        Record severity.
    status : Status
        Record status.
    time : int
        Record time in epoch milliseconds.
    message : str
        Human message.
    metadata : Metadata
        Product and correlation metadata.
    start_time, end_time, duration : int | None
        Epoch-millisecond timing, when known.
    actor : Actor | None
        Process that did the work.
    attacks : tuple[Attack, ...]
        Exercised ATT&CK techniques.
    unmapped : ActionUnmapped | ScenarioUnmapped | None
        telenoise-specific fields.
    """

    class_uid: int
    class_name: str
    category_uid: int
    category_name: str
    activity_id: int
    activity_name: str
    severity: Severity
    status: Status
    time: int
    message: str
    metadata: Metadata
    start_time: int | None = None
    end_time: int | None = None
    duration: int | None = None
    actor: Actor | None = None
    attacks: tuple[Attack, ...] = ()
    unmapped: ActionUnmapped | ScenarioUnmapped | None = None

    @property
    def type_uid(self) -> int:
        return self.class_uid * 100 + self.activity_id

    @property
    def type_name(self) -> str:
        return f"{self.class_name}: {self.activity_name}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSONL wire representation."""
        data: dict[str, Any] = {
            "activity_id": self.activity_id,
            "activity_name": self.activity_name,
            "category_uid": self.category_uid,
            "category_name": self.category_name,
            "class_uid": self.class_uid,
            "class_name": self.class_name,
            "severity_id": int(self.severity),
            "severity": self.severity.label,
            "time": self.time,
            "type_uid": self.type_uid,
            "type_name": self.type_name,
            "message": self.message,
            "status_id": int(self.status),
            "status": self.status.label,
        }
        if self.start_time is not None:
            data["start_time"] = self.start_time
        if self.end_time is not None:
            data["end_time"] = self.end_time
        if self.duration is not None:
            data["duration"] = self.duration
        data["metadata"] = self.metadata.to_dict()
        if self.actor is not None:
            data["actor"] = self.actor.to_dict()
        if self.attacks:
            data["attacks"] = [a.to_dict() for a in self.attacks]
        if self.unmapped is not None:
            data["unmapped"] = self.unmapped.to_dict()
        return data
