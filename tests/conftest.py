"""Pytest configuration and fixtures for test suite."""

import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from telenoise.actions import (  # noqa: E402
    ActionInfo,
    CancelToken,
    Category,
    EmitFn,
    Params,
    ParamSpec,
    Privilege,
    TechniqueRef,
)
from telenoise.telemetry import TelemetryEvent, new_event  # noqa: E402


class FakeAction:
    """Configurable action that records which lifecycle operations ran."""

    def __init__(
        self,
        name: str = "fake",
        category: Category = Category.FILE,
        *,
        events: int = 1,
        event_type: str = "file_create",
        prereq_error: str | None = None,
        generate_error: Exception | None = None,
        cleanup_error: str | None = None,
        dry_run_error: Exception | None = None,
        info_error: Exception | None = None,
        block: bool = False,
        sleep: float = 0.0,
        planned: tuple[str, ...] = ("step one", "step two"),
        techniques: tuple[TechniqueRef, ...] = (),
        tags: tuple[str, ...] = (),
        privileges: Privilege = Privilege.NONE,
    ) -> None:
        self._info = ActionInfo(
            name=name,
            category=category,
            description=f"fake {name}",
            privileges=privileges,
            techniques=techniques,
            tags=tags,
        )
        self.events = events
        self.event_type = event_type
        self.prereq_error = prereq_error
        self.generate_error = generate_error
        self.cleanup_error = cleanup_error
        self.dry_run_error = dry_run_error
        self.info_error = info_error
        self.block = block
        self.sleep = sleep
        self.planned = planned
        self.calls: list[str] = []
        self.seen_token: CancelToken | None = None
        self.seen_params: Params | None = None

    def info(self) -> ActionInfo:
        if self.info_error is not None:
            raise self.info_error
        return self._info

    def param_specs(self) -> list[ParamSpec]:
        return [ParamSpec("count", "How many", default="1", example="3")]

    def check_prereqs(self) -> None:
        self.calls.append("check_prereqs")
        if self.prereq_error:
            raise RuntimeError(self.prereq_error)

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        self.calls.append("generate")
        self.seen_token = token
        self.seen_params = params
        for i in range(self.events):
            emit(new_event(self._info, self.event_type, True, f"{self._info.name} event {i}"))
        if self.block:
            token.wait(5)
            token.raise_if_cancelled()
        if self.sleep:
            time.sleep(self.sleep)
        if self.generate_error is not None:
            raise self.generate_error

    def dry_run(self, params: Params) -> list[str]:
        self.calls.append("dry_run")
        if self.dry_run_error is not None:
            raise self.dry_run_error
        return list(self.planned)

    def cleanup(self) -> None:
        self.calls.append("cleanup")
        if self.cleanup_error:
            raise OSError(self.cleanup_error)


class RecordingEmitter:
    """Emitter that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []
        self._lock = threading.Lock()

    def __call__(self, event: TelemetryEvent) -> None:
        with self._lock:
            self.events.append(event)


@pytest.fixture
def make_action() -> Callable[..., FakeAction]:
    """Factory for fake actions with configurable lifecycle behaviour."""
    return FakeAction


@pytest.fixture
def recorder() -> RecordingEmitter:
    """Emitter that records events in order."""
    return RecordingEmitter()
