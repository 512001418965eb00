"""Helper utilities for audit logging.

Audit-specific utility functions: correlation id generation, package
version lookup, actor snapshot, and ATT&CK technique conversion.

For timestamp utilities, see telenoise.utils.
"""

import os
import secrets
from collections.abc import Iterable

from telenoise.actions.base import TechniqueRef
from telenoise.audit.models import PRODUCT_NAME, Actor, Attack
from telenoise.telemetry.event import current_username

__all__ = [
    "generate_correlation_id",
    "get_package_version",
    "current_actor",
    "techniques_to_attacks",
    "split_technique_name",
]


def generate_correlation_id() -> str:
    """Generate a run correlation identifier.

    Returns
    -------
    str
        16 lowercase hex characters.
    """
    return secrets.token_hex(8)


def get_package_version() -> str:
    """Get telenoise package version.

    Returns
    -------
    str
        Package version or "unknown".
    """
    try:
        import importlib.metadata

        return importlib.metadata.version("telenoise")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def current_actor() -> Actor:
    """Snapshot the running process as an OCSF actor."""
    return Actor(pid=os.getpid(), name=PRODUCT_NAME, user=current_username())


def split_technique_name(name: str) -> tuple[str, str]:
    """Split "Technique: Sub-technique" on the first ": ".

    Examples
    --------
        >>> split_technique_name("Application Layer Protocol: DNS")
        ('Application Layer Protocol', 'DNS')
        >>> split_technique_name("Process Discovery")
        ('Process Discovery', '')
    """
    technique, sep, sub_technique = name.partition(": ")
    return technique, sub_technique if sep else ""


def techniques_to_attacks(techniques: Iterable[TechniqueRef]) -> tuple[Attack, ...]:
    """Convert declared technique references to OCSF attack entries.

    The sub-technique uid is the technique id followed by the sub-technique
    suffix (e.g., "T1071" + ".004").
    """
    attacks = []
    for ref in techniques:
        technique_name, sub_technique_name = split_technique_name(ref.name)
        if ref.sub_technique:
            attacks.append(
                Attack(
                    technique_uid=ref.technique,
                    technique_name=technique_name,
                    sub_technique_uid=ref.technique + ref.sub_technique,
                    sub_technique_name=sub_technique_name,
                )
            )
        else:
            attacks.append(Attack(technique_uid=ref.technique, technique_name=technique_name))
    return tuple(attacks)
