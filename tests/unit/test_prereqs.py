"""Tests for runtime prerequisite helpers."""

import pytest

from telenoise import prereqs
from telenoise.errors import PrerequisiteError


@pytest.mark.unit
def test_check_macos(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the macOS check follows sys.platform."""
    monkeypatch.setattr(prereqs.sys, "platform", "darwin")
    prereqs.check_macos()

    monkeypatch.setattr(prereqs.sys, "platform", "linux")
    with pytest.raises(PrerequisiteError, match="requires macOS"):
        prereqs.check_macos()


@pytest.mark.unit
def test_check_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the root check follows the effective uid."""
    monkeypatch.setattr(prereqs.os, "geteuid", lambda: 0)
    assert prereqs.is_root()
    prereqs.check_root()

    monkeypatch.setattr(prereqs.os, "geteuid", lambda: 501)
    with pytest.raises(PrerequisiteError, match="root privileges"):
        prereqs.check_root()


@pytest.mark.unit
def test_is_admin_without_group(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test a host without an admin group reports False."""

    def missing(name: str):
        raise KeyError(name)

    monkeypatch.setattr(prereqs.grp, "getgrnam", missing)

    assert prereqs.is_admin() is False


@pytest.mark.unit
def test_check_command() -> None:
    """Test PATH lookup of commands."""
    prereqs.check_command("sh")
    assert prereqs.has_command("sh")

    with pytest.raises(PrerequisiteError, match="not found in PATH"):
        prereqs.check_command("telenoise-definitely-missing-binary")
