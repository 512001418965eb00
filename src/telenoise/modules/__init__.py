"""Built-in telemetry actions.

New built-in actions are added by extending ``BUILTIN_ACTIONS``.
``build_registry`` returns a fresh registry with a new instance of each,
so action state never leaks between registries.
"""

from __future__ import annotations

from telenoise.actions import ActionRegistry, BaseAction
from telenoise.modules.file import FileCreate, FileModify
from telenoise.modules.network import NetConnect, NetDNS, NetListen
from telenoise.modules.process import ProcSpawn

__all__ = [
    "BUILTIN_ACTIONS",
    "FileCreate",
    "FileModify",
    "NetConnect",
    "NetDNS",
    "NetListen",
    "ProcSpawn",
    "build_registry",
]

BUILTIN_ACTIONS: tuple[type[BaseAction], ...] = (
    FileCreate,
    FileModify,
    NetConnect,
    NetDNS,
    NetListen,
    ProcSpawn,
)


def build_registry() -> ActionRegistry:
    """Create a registry holding every built-in action.

    Returns
    -------
    ActionRegistry
        Registry with one fresh instance per built-in action class.
    """
    return ActionRegistry(cls() for cls in BUILTIN_ACTIONS)
