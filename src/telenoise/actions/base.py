"""Capability contract shared by every telemetry-generating action.

Architecture
------------
* ``Action``: structural protocol with six operations. The orchestrator
  relies on nothing else.
* ``ActionInfo``, ``ParamSpec`` and ``TechniqueRef``: immutable metadata.
* ``Params``: flat string parameters shared by the CLI and scenarios.
* ``BaseAction``: optional convenience base with no-op prereqs/cleanup.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

if TYPE_CHECKING:
    from telenoise.actions.cancellation import CancelToken
    from telenoise.telemetry.event import TelemetryEvent

__all__ = [
    "Category",
    "Privilege",
    "TechniqueRef",
    "ActionInfo",
    "ParamSpec",
    "Params",
    "EmitFn",
    "Action",
    "BaseAction",
]


class Category(str, Enum):
    """Telemetry domain an action belongs to."""

    NETWORK = "network"
    PROCESS = "process"
    FILE = "file"
    TCC = "tcc"
    ENDPOINT_SECURITY = "endpoint_security"
    SERVICE = "service"
    PLIST = "plist"
    XPC = "xpc"

    def __str__(self) -> str:
        return self.value


class Privilege(str, Enum):
    """Privilege level required to run an action."""

    NONE = "none"
    ROOT = "root"
    TCC = "tcc"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TechniqueRef:
    """ATT&CK technique reference declared by an action.

    Attributes
    ----------
    technique : str
        Technique id (e.g., "T1071").
    sub_technique : str
        Sub-technique suffix (e.g., ".004"), empty when not applicable.
    name : str
        Display name, "Technique: Sub-technique" when a sub-technique is set.
    """

    technique: str
    sub_technique: str = ""
    name: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialise to a plain dict."""
        return {
            "technique": self.technique,
            "sub_technique": self.sub_technique,
            "name": self.name,
        }


@dataclass(frozen=True)
class ActionInfo:
    """Immutable action metadata.

    Attributes
    ----------
    name : str
        Registry-unique action name.
    category : Category
        Telemetry domain.
    description : str
        Human description.
    privileges : Privilege
        Privilege level required.
    techniques : tuple[TechniqueRef, ...]
        Declared ATT&CK technique references.
    tags : tuple[str, ...]
        Free-form tags used for filtering.
    min_os_version : str
        Minimum OS version, empty if unconstrained.
    author : str
        Action author.
    """

    name: str
    category: Category
    description: str = ""
    privileges: Privilege = Privilege.NONE
    techniques: tuple[TechniqueRef, ...] = ()
    tags: tuple[str, ...] = ()
    min_os_version: str = ""
    author: str = ""


@dataclass(frozen=True)
class ParamSpec:
    """Description of one named parameter accepted by an action."""

    name: str
    description: str = ""
    required: bool = False
    default: str = ""
    example: str = ""


class Params(dict[str, str]):
    """Flat string parameter mapping passed to an action."""

    def resolve(self, key: str, default: str = "") -> str:
        """Return the value for *key*, or *default* if absent or empty."""
        value = super().get(key)
        if value:
            return value
        return default

    def resolve_int(self, key: str, default: int) -> int:
        """Return *key* parsed as an int, or *default* if absent or invalid."""
        try:
            return int(self.resolve(key, str(default)))
        except ValueError:
            return default

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> Params:
        """Build params from ``key=value`` strings, skipping malformed pairs."""
        params = cls()
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if sep and key:
                params[key.strip()] = value
        return params


EmitFn = Callable[["TelemetryEvent"], None]


@runtime_checkable
class Action(Protocol):
    """Structural protocol every action must satisfy.

    ``generate`` must honour the cancellation token and ``cleanup`` must be
    idempotent and safe to call even if ``generate`` never succeeded.
    Failures are raised, not returned.
    """

    def info(self) -> ActionInfo:
        """Return immutable action metadata."""
        ...

    def param_specs(self) -> list[ParamSpec]:
        """Return the parameters this action accepts."""
        ...

    def check_prereqs(self) -> None:
        """Raise ``PrerequisiteError`` if the action cannot run here."""
        ...

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        """Perform the action, calling *emit* once per observable operation."""
        ...

    def dry_run(self, params: Params) -> list[str]:
        """Return the human-readable operations ``generate`` would perform."""
        ...

    def cleanup(self) -> None:
        """Release anything ``generate`` acquired."""
        ...


class BaseAction:
    """Convenience base for actions with class-level metadata.

    Subclasses set ``INFO`` and ``PARAMS`` and implement ``generate`` and
    ``dry_run``.
    """

    INFO: ClassVar[ActionInfo]
    PARAMS: ClassVar[tuple[ParamSpec, ...]] = ()

    def info(self) -> ActionInfo:
        """Return the class-level metadata."""
        return self.INFO

    def param_specs(self) -> list[ParamSpec]:
        """Return the class-level parameter specs."""
        return list(self.PARAMS)

    def check_prereqs(self) -> None:
        """No prerequisites by default."""

    def cleanup(self) -> None:
        """Nothing to release by default."""
