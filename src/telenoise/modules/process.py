"""Process actions."""

from __future__ import annotations

import subprocess

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
from telenoise.prereqs import check_command
from telenoise.telemetry import new_event, with_details, with_error

__all__ = ["ProcSpawn"]

DEFAULT_COMMAND = "echo 'Telemetry Payload Executed'"
POLL_INTERVAL = 0.1


class ProcSpawn(BaseAction):
    """Run a shell command chain via ``sh -c``.

    The child is polled against the cancellation token and killed as soon
    as the token is cancelled.
    """

    INFO = ActionInfo(
        name="proc_spawn",
        category=Category.PROCESS,
        description="Spawns a shell command chain to generate process execution telemetry",
        techniques=(TechniqueRef("T1059", ".004", "Command and Scripting Interpreter: Unix Shell"),),
        tags=("execution", "shell", "spawn"),
        min_os_version="12.0",
        author="telenoise",
    )
    PARAMS = (
        ParamSpec("command", "Shell command to execute via sh -c", default=DEFAULT_COMMAND, example="id && whoami"),
    )

    def __init__(self) -> None:
        self._proc: subprocess.Popen | None = None

    def check_prereqs(self) -> None:
        check_command("sh")

    def generate(self, token: CancelToken, params: Params, emit: EmitFn) -> None:
        info = self.info()
        command = params.resolve("command", DEFAULT_COMMAND)
        event = new_event(info, "process_spawn", False, f"spawning: sh -c {command!r}")

        try:
            self._proc = subprocess.Popen(
                ["sh", "-c", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            emit(with_error(event, e))
            raise

        proc = self._proc
        while True:
            try:
                output, _ = proc.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if token.cancelled:
                    proc.kill()
                    proc.communicate()
                    emit(with_error(event, f"killed pid {proc.pid}: {token.reason}"))
                    token.raise_if_cancelled()

        details = {"command": command, "pid": proc.pid, "exit_code": proc.returncode, "output": output}
        if proc.returncode != 0:
            emit(with_details(with_error(event, f"exit status {proc.returncode}"), details))
            raise subprocess.CalledProcessError(proc.returncode, ["sh", "-c", command], output)

        event = new_event(info, "process_spawn", True, f"process exited 0: sh -c {command!r}")
        emit(with_details(event, details))

    def dry_run(self, params: Params) -> list[str]:
        return [f"exec: sh -c {params.resolve('command', DEFAULT_COMMAND)!r}"]

    def cleanup(self) -> None:
        proc, self._proc = self._proc, None
        if proc is not None and proc.poll() is None:
            proc.kill()
            proc.wait()
