"""OCSF classification of telemetry events.

``classify`` maps an action category and a raw event kind to an OCSF
(class, category, activity) triple. It is pure and total: any input pair,
including unknown or empty strings, yields a classification.

Resolution order
----------------
1. Kind rules that apply regardless of category (HTTP, DNS).
2. Per-category mapping with a small activity sub-mapping keyed by
   substrings of the kind.
3. Generic "API Activity: Other" fallback.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "Classification",
    "classify",
    "FALLBACK",
    "LIFECYCLE",
]


@dataclass(frozen=True)
class Classification:
    """OCSF class, category, and activity identifiers for one record.

    Attributes
    ----------
    class_uid : int
        OCSF event class id (e.g., 4001).
    class_name : str
        OCSF event class name.
    category_uid : int
        OCSF category id.
    category_name : str
        OCSF category name.
    activity_id : int
        Activity id within the class.
    activity_name : str
        Activity name.
    """

    class_uid: int
    class_name: str
    category_uid: int
    category_name: str
    activity_id: int
    activity_name: str

    @property
    def type_uid(self) -> int:
        """Composite type id: ``class_uid * 100 + activity_id``."""
        return self.class_uid * 100 + self.activity_id

    @property
    def type_name(self) -> str:
        """Composite type name: ``"<class>: <activity>"``."""
        return f"{self.class_name}: {self.activity_name}"


FALLBACK = Classification(6003, "API Activity", 6, "Application Activity", 99, "Other")

# Lifecycle and scenario records are always filed under the fallback class.
LIFECYCLE = FALLBACK

_NETWORK = (4001, "Network Activity", 4, "Network Activity")
_HTTP = Classification(4002, "HTTP Activity", 4, "Network Activity", 1, "Connect")
_DNS = Classification(4003, "DNS Activity", 4, "Network Activity", 1, "Query")
_PROCESS = (1007, "Process Activity", 1, "System Activity")
_FILE = (1001, "File System Activity", 1, "System Activity")
_SCHEDULED_JOB = Classification(1006, "Scheduled Job Activity", 1, "System Activity", 1, "Create")

# (substrings, activity_id, activity_name), first match wins
_NETWORK_ACTIVITIES: tuple[tuple[tuple[str, ...], int, str], ...] = (
    (("listen",), 5, "Listen"),
)
_PROCESS_ACTIVITIES: tuple[tuple[tuple[str, ...], int, str], ...] = (
    (("terminate", "kill"), 2, "Terminate"),
    (("signal", "sigstop", "sigcont", "inject"), 99, "Other"),
    (("spawn", "exec", "launch"), 1, "Launch"),
)
_FILE_ACTIVITIES: tuple[tuple[tuple[str, ...], int, str], ...] = (
    (("delete", "remove"), 6, "Delete"),
    (("modify", "update", "rename"), 5, "Update"),
    (("read", "open"), 4, "Read"),
    (("create", "write"), 3, "Create"),
)


def _activity(
    kind: str,
    rules: tuple[tuple[tuple[str, ...], int, str], ...],
    default: tuple[int, str],
) -> tuple[int, str]:
    for needles, activity_id, activity_name in rules:
        if any(needle in kind for needle in needles):
            return activity_id, activity_name
    return default


def _network(kind: str) -> Classification:
    return Classification(*_NETWORK, *_activity(kind, _NETWORK_ACTIVITIES, (1, "Connect")))


def _process(kind: str) -> Classification:
    return Classification(*_PROCESS, *_activity(kind, _PROCESS_ACTIVITIES, (1, "Launch")))


def _file(kind: str) -> Classification:
    return Classification(*_FILE, *_activity(kind, _FILE_ACTIVITIES, (3, "Create")))


def _is_kind(kind: str, family: str) -> bool:
    return kind == family or kind.startswith(f"{family}_")


def classify(category: object, kind: object) -> Classification:
    """Map an action category and event kind to an OCSF classification.

    Parameters
    ----------
    category : object
        Action category (e.g., "network"); usually a ``Category`` or str.
    kind : object
        Event kind (e.g., "tcp_connect").

    Returns
    -------
    Classification
        Deterministic classification; ``FALLBACK`` for anything unmapped.

    Examples
    --------
        >>> classify("network", "tcp_listen").activity_id
        5
        >>> classify("network", "http_get").class_uid
        4002
        >>> classify("bogus", "whatever") == FALLBACK
        True
    """
    cat = str(category or "").lower()
    kind = str(kind or "").lower()

    if _is_kind(kind, "http"):
        return _HTTP
    if _is_kind(kind, "dns"):
        return _DNS

    if cat == "network":
        return _network(kind)
    if cat == "process":
        return _process(kind)
    if cat in ("file", "plist"):
        return _file(kind)
    if cat == "endpoint_security":
        if "file" in kind:
            return _file(kind)
        if "process" in kind:
            return _process(kind)
        return FALLBACK
    if cat == "service":
        return _SCHEDULED_JOB

    return FALLBACK
