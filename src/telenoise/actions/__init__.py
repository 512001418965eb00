"""Action capability contract, registry, and cancellation.

Main Components
---------------
- Action: Six-operation protocol every telemetry action implements
- ActionRegistry: Name-keyed, deterministically ordered catalog
- CancelToken: Cooperative cancellation with deadlines
"""

from telenoise.actions.base import (
    Action,
    ActionInfo,
    BaseAction,
    Category,
    EmitFn,
    Params,
    ParamSpec,
    Privilege,
    TechniqueRef,
)
from telenoise.actions.cancellation import CancelToken
from telenoise.actions.registry import ActionRegistry

__all__ = [
    "Action",
    "ActionInfo",
    "ActionRegistry",
    "BaseAction",
    "CancelToken",
    "Category",
    "EmitFn",
    "Params",
    "ParamSpec",
    "Privilege",
    "TechniqueRef",
]
