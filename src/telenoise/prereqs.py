"""Runtime prerequisite helpers.

Actions call the ``check_*`` functions from ``check_prereqs`` to refuse to
run on hosts where they cannot work safely. The built-in actions only need
``check_command``. ``check_macos``, ``check_root`` and ``is_admin`` are
provided for actions registered by other packages, such as those in the
macOS-only categories or those declaring ``Privilege.ROOT``.
"""

import grp
import os
import shutil
import sys

from telenoise.errors import PrerequisiteError

__all__ = [
    "is_macos",
    "is_root",
    "is_admin",
    "has_command",
    "check_macos",
    "check_root",
    "check_command",
]


def is_macos() -> bool:
    """Whether the host OS is macOS."""
    return sys.platform == "darwin"


def is_root() -> bool:
    """Whether the process runs as uid 0."""
    return os.geteuid() == 0


def is_admin() -> bool:
    """Whether the current user belongs to the "admin" group."""
    try:
        admin = grp.getgrnam("admin")
    except KeyError:
        return False
    return admin.gr_gid in os.getgroups()


def has_command(name: str) -> bool:
    """Whether *name* resolves to an executable on PATH."""
    return shutil.which(name) is not None


def check_macos() -> None:
    """Raise ``PrerequisiteError`` unless running on macOS."""
    if not is_macos():
        raise PrerequisiteError(f"this action requires macOS (darwin); current OS: {sys.platform}")


def check_root() -> None:
    """Raise ``PrerequisiteError`` unless running as root."""
    if not is_root():
        raise PrerequisiteError("this action requires root privileges (re-run with sudo)")


def check_command(name: str) -> None:
    """Raise ``PrerequisiteError`` if *name* is not on PATH."""
    if not has_command(name):
        raise PrerequisiteError(f"required command {name!r} not found in PATH")
