"""OCSF-aligned audit logging for telenoise runs.

Audit records describe what telenoise itself did, as opposed to the
telemetry events actions generate for endpoint sensors.

Main Components
---------------
- classify: Maps (category, event kind) to an OCSF classification
- AuditLogger: Append-only JSONL writer of audit records
- LifecycleData: Per-run timing and outcome fed to the logger
"""

from telenoise.audit.classify import FALLBACK, Classification, classify
from telenoise.audit.helpers import (
    current_actor,
    generate_correlation_id,
    get_package_version,
    techniques_to_attacks,
)
from telenoise.audit.logger import AuditLogger, EventCounter
from telenoise.audit.models import (
    OCSF_VERSION,
    AuditRecord,
    LifecycleData,
    LifecyclePhase,
    Severity,
    Status,
)

__all__ = [
    "FALLBACK",
    "OCSF_VERSION",
    "AuditLogger",
    "AuditRecord",
    "Classification",
    "EventCounter",
    "LifecycleData",
    "LifecyclePhase",
    "Severity",
    "Status",
    "classify",
    "current_actor",
    "generate_correlation_id",
    "get_package_version",
    "techniques_to_attacks",
]
