"""Attributable endpoint telemetry generation with an OCSF audit trail.

This package provides:
- Actions (telenoise.actions): capability contract, registry, cancellation
- Telemetry (telenoise.telemetry): event model and output sink
- Audit (telenoise.audit): OCSF classification and JSONL audit logging
- Engine (telenoise.engine): lifecycle, batch, and scenario orchestration
- Modules (telenoise.modules): built-in file, network, and process actions
- Config (telenoise.config): YAML runtime configuration
- CLI (telenoise.cli): command-line interface
"""

__version__ = "0.1.0"
__license__ = "MIT"

from telenoise.actions import Action, ActionInfo, ActionRegistry, CancelToken, Params
from telenoise.audit import AuditLogger, classify
from telenoise.engine import RunOptions, load_scenario, run_many, run_scenario, run_single
from telenoise.errors import TelenoiseError
from telenoise.modules import build_registry
from telenoise.telemetry import EventSink, TelemetryEvent

__all__ = [
    "__version__",
    "__license__",
    "Action",
    "ActionInfo",
    "ActionRegistry",
    "AuditLogger",
    "CancelToken",
    "EventSink",
    "Params",
    "RunOptions",
    "TelemetryEvent",
    "TelenoiseError",
    "build_registry",
    "classify",
    "load_scenario",
    "run_many",
    "run_scenario",
    "run_single",
]
