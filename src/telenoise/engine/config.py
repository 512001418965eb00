"""Run options and result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from telenoise.audit.logger import AuditLogger


@dataclass
class RunOptions:
    """Options shared by single, batch, and scenario runs.

    Attributes
    ----------
    dry_run : bool
        Describe planned operations instead of performing them.
    timeout : float | None
        Seconds allowed for each ``generate`` call. None or 0 is unbounded.
    verbose : bool
        Echo extra diagnostics (e.g., cleanup failures) to stderr.
    audit_logger : AuditLogger | None
        Audit recorder; None disables auditing.
    continue_on_error : bool
        Keep running scenario steps after a step fails.
    scenario_name : str
        Enclosing scenario name, stamped into lifecycle records.
    scenario_file : str
        Enclosing scenario file, stamped into lifecycle records.
    """

    dry_run: bool = False
    timeout: float | None = None
    verbose: bool = False
    audit_logger: AuditLogger | None = None
    continue_on_error: bool = False
    scenario_name: str = ""
    scenario_file: str = ""

    def __post_init__(self) -> None:
        """Validate."""
        if self.timeout is not None and self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")

    def for_scenario(self, name: str, path: str) -> RunOptions:
        """Return a copy stamped with the enclosing scenario."""
        return replace(self, scenario_name=name, scenario_file=path)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (the audit logger is reported by path)."""
        return {
            "dry_run": self.dry_run,
            "timeout": self.timeout,
            "verbose": self.verbose,
            "audit_log": str(self.audit_logger.log_path) if self.audit_logger else None,
            "continue_on_error": self.continue_on_error,
            "scenario_name": self.scenario_name,
            "scenario_file": self.scenario_file,
        }


@dataclass
class ActionResult:
    """Outcome of one successful action run.

    Attributes
    ----------
    action : str
        Action name.
    dry_run : bool
        Whether the run was a dry run.
    events_emitted : int
        Number of telemetry events emitted.
    cleanup_error : str | None
        Cleanup failure text, None if cleanup succeeded or did not run.
    duration_seconds : float
        Wall-clock duration of the run.
    """

    action: str
    dry_run: bool = False
    events_emitted: int = 0
    cleanup_error: str | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "action": self.action,
            "dry_run": self.dry_run,
            "events_emitted": self.events_emitted,
            "cleanup_error": self.cleanup_error,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class ScenarioResult:
    """Outcome of a scenario that completed without failed steps.

    Attributes
    ----------
    name : str
        Scenario name.
    path : str
        Scenario file path.
    steps_passed : int
        Steps that passed.
    steps_failed : int
        Steps that failed (always 0 unless errors were tolerated).
    total_steps : int
        Steps declared.
    """

    name: str
    path: str
    steps_passed: int
    steps_failed: int
    total_steps: int

    @property
    def success(self) -> bool:
        return self.steps_failed == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "path": self.path,
            "steps_passed": self.steps_passed,
            "steps_failed": self.steps_failed,
            "total_steps": self.total_steps,
        }
