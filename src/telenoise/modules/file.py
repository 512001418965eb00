"""File system actions.

Both actions work in a scratch location under the system temp directory by
default and remove everything they created in ``cleanup``.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

from telenoise.actions import (
    ActionInfo,
    BaseAction,
    CancelToken,
    Category,
    EmitFn,
    Params,
    ParamSpec,
    TechniqueRef,
)
from telenoise.telemetry import new_event, with_details, with_error
from telenoise.utils import utc_now

__all__ = ["FileCreate", "FileModify"]

DEFAULT_BASE_DIR = str(Path(tempfile.gettempdir()) / "telenoise_test")
DEFAULT_TARGET = str(Path(tempfile.gettempdir()) / "telenoise_modify_target.txt")


class FileCreate(BaseAction):
    """Create a batch of small text files."""

    INFO = ActionInfo(
        name="file_create",
        category=Category.FILE,
        description="Creates files in a target directory to generate file creation telemetry",
        techniques=(TechniqueRef("T1074", ".001", "Data Staged: Local Data Staging"),),
        tags=("file", "create", "write"),
        min_os_version="12.0",
        author="telenoise",
    )
    PARAMS = (
        ParamSpec("base_dir", "Directory to create files in", default=DEFAULT_BASE_DIR, example="/var/tmp/telenoise"),
        ParamSpec("count", "Number of files to create", default="3", example="10"),
        ParamSpec("prefix", "File name prefix", default="tnfile_", example="test_"),
    )

    def __init__(self) -> None:
        self._created: list[Path] = []

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        info = self.info()
        base_dir = Path(params.resolve("base_dir", DEFAULT_BASE_DIR))
        count = params.resolve_int("count", 3)
        prefix = params.resolve("prefix", "tnfile_")

        try:
            base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            emit(with_error(new_event(info, "dir_create", False, f"failed to create directory {base_dir}"), e))
            raise

        for i in range(count):
            token.raise_if_cancelled()
            now = utc_now()
            path = base_dir / f"{prefix}{now:%Y%m%d_%H%M%S}{i}.txt"
            content = f"telenoise telemetry file {i} created at {now.isoformat()}\n"
            event = new_event(info, "file_create", False, f"creating {path}")
            try:
                path.write_text(content, encoding="utf-8")
            except OSError as e:
                emit(with_error(event, e))
                continue
            self._created.append(path)
            event = new_event(info, "file_create", True, f"created {path} ({len(content)} bytes)")
            emit(with_details(event, {"path": str(path), "size": len(content)}))

    def dry_run(self, params: Params) -> list[str]:
        base_dir = params.resolve("base_dir", DEFAULT_BASE_DIR)
        count = params.resolve("count", "3")
        prefix = params.resolve("prefix", "tnfile_")
        return [
            f"mkdir -p {base_dir}",
            f"create {count} files with prefix {prefix!r} in {base_dir}",
        ]

    def cleanup(self) -> None:
        created, self._created = self._created, []
        for path in created:
            path.unlink(missing_ok=True)


class FileModify(BaseAction):
    """Write, modify, rename, then delete a scratch file.

    Each step emits one event, so a single run exercises the create,
    update, and delete activities of file telemetry.
    """

    INFO = ActionInfo(
        name="file_modify",
        category=Category.FILE,
        description="Writes, modifies, renames, and deletes a scratch file",
        techniques=(TechniqueRef("T1565", ".001", "Data Manipulation: Stored Data Manipulation"),),
        tags=("file", "modify", "write", "delete"),
        min_os_version="12.0",
        author="telenoise",
    )
    PARAMS = (
        ParamSpec("target_path", "Scratch file to operate on", default=DEFAULT_TARGET, example="/tmp/test.txt"),
        ParamSpec("content", "Content to append", default="telenoise modification", example="injected data"),
    )

    def __init__(self) -> None:
        self._paths: list[Path] = []

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        info = self.info()
        target = Path(params.resolve("target_path", DEFAULT_TARGET))
        content = params.resolve("content", "telenoise modification")
        renamed = target.with_name(target.name + ".renamed")
        self._paths = [target, renamed]

        def step(kind: str, message: str, operation: Callable[[], object], details: dict) -> None:
            token.raise_if_cancelled()
            try:
                operation()
            except OSError as e:
                emit(with_error(new_event(info, kind, False, f"failed: {message}"), e))
                raise
            emit(with_details(new_event(info, kind, True, message), details))

        def append() -> None:
            with target.open("a", encoding="utf-8") as f:
                f.write(f"\n{content} [{utc_now().isoformat()}]")

        target.parent.mkdir(parents=True, exist_ok=True)
        step(
            "file_write",
            f"wrote {target}",
            lambda: target.write_text("telenoise scratch file\n", encoding="utf-8"),
            {"path": str(target)},
        )
        step("file_modify", f"modified {target}", append, {"path": str(target)})
        step(
            "file_rename",
            f"renamed {target} to {renamed}",
            lambda: target.rename(renamed),
            {"path": str(target), "new_path": str(renamed)},
        )
        step("file_delete", f"deleted {renamed}", renamed.unlink, {"path": str(renamed)})

    def dry_run(self, params: Params) -> list[str]:
        target = params.resolve("target_path", DEFAULT_TARGET)
        content = params.resolve("content", "telenoise modification")
        return [
            f"write {target}",
            f"append {content!r} with timestamp to {target}",
            f"rename {target} to {target}.renamed",
            f"delete {target}.renamed",
        ]

    def cleanup(self) -> None:
        paths, self._paths = self._paths, []
        for path in paths:
            path.unlink(missing_ok=True)
