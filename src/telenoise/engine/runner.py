"""Action lifecycle orchestrator and batch runner.

Every action goes through the same lifecycle:

    PrereqCheck -> (DryRun | Generate) -> Cleanup -> lifecycle audit record

A prerequisite failure skips everything after it, and a dry run skips
Generate and Cleanup. Otherwise cleanup always runs, whether Generate
succeeded, failed, or was cancelled. When an audit logger is configured,
exactly one lifecycle record is written per run.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping

import click

from telenoise.actions.base import Action, ActionInfo, EmitFn, Params
from telenoise.actions.cancellation import CancelToken
from telenoise.audit.logger import EventCounter
from telenoise.audit.models import LifecycleData, LifecyclePhase
from telenoise.engine.config import ActionResult, RunOptions
from telenoise.errors import (
    BatchError,
    CancellationError,
    CleanupError,
    GenerateError,
    PrerequisiteError,
    TelenoiseError,
)
from telenoise.telemetry.event import TelemetryEvent
from telenoise.utils import utc_now

__all__ = ["run_single", "run_many"]


def _counting_emitter(emit: EmitFn, counter: EventCounter) -> EmitFn:
    def counted_emit(event: TelemetryEvent) -> None:
        emit(event)
        counter.increment()

    return counted_emit


def _generate_failure(info: ActionInfo, token: CancelToken, exc: Exception) -> GenerateError:
    """Classify an exception raised by ``generate``."""
    if isinstance(exc, GenerateError):
        if exc.action is None:
            exc.action = info.name
        return exc
    if token.cancelled:
        return CancellationError(f"[{info.name}] {token.reason}: {exc}", action=info.name)
    return GenerateError(f"[{info.name}] {exc}", action=info.name)


def run_single(
    action: Action,
    params: Mapping[str, str] | None,
    emit: EmitFn,
    options: RunOptions | None = None,
    token: CancelToken | None = None,
) -> ActionResult:
    """Drive one action through its full lifecycle.

    Parameters
    ----------
    action : Action
        Action to run.
    params : Mapping[str, str] | None
        Action parameters.
    emit : EmitFn
        Downstream telemetry emitter.
    options : RunOptions | None, optional
        Run options, defaults to ``RunOptions()``.
    token : CancelToken | None, optional
        Caller's cancellation token. ``generate`` receives a child of it,
        bounded by ``options.timeout``.

    Returns
    -------
    ActionResult
        Outcome of the run.

    Raises
    ------
    PrerequisiteError
        If ``check_prereqs`` fails. Nothing else runs.
    CancellationError
        If the timeout or the caller cancelled ``generate``.
    GenerateError
        If ``generate`` failed for any other reason, or if ``info`` or
        ``dry_run`` raised.
    """
    options = options or RunOptions()
    token = token or CancelToken()
    params = Params(params or {})
    try:
        info = action.info()
    except Exception as e:
        raise GenerateError(f"[{type(action).__name__}] info: {e}") from e
    audit = options.audit_logger
    started = time.perf_counter()

    lifecycle = LifecycleData(
        start_time=utc_now(),
        dry_run=options.dry_run,
        scenario_name=options.scenario_name,
        scenario_file=options.scenario_file,
    )

    try:
        action.check_prereqs()
    except Exception as e:
        lifecycle.prereq_result = "fail"
        lifecycle.prereq_error = str(e)
        if audit:
            lifecycle.end_time = utc_now()
            audit.log_lifecycle(LifecyclePhase.PREREQ_FAIL, info, params, lifecycle)
        raise PrerequisiteError(f"[{info.name}] prereqs: {e}", action=info.name) from e
    lifecycle.prereq_result = "pass"

    if options.dry_run:
        try:
            planned = list(action.dry_run(params))
        except Exception as e:
            lifecycle.generate_error = str(e)
            if audit:
                lifecycle.end_time = utc_now()
                audit.log_lifecycle(LifecyclePhase.DRY_RUN, info, params, lifecycle)
            raise GenerateError(f"[{info.name}] dry-run: {e}", action=info.name) from e
        for step in planned:
            click.echo(f"[dry-run] [{info.name}] {step}")
        if audit:
            lifecycle.end_time = utc_now()
            audit.log_lifecycle(LifecyclePhase.DRY_RUN, info, params, lifecycle)
        return ActionResult(
            action=info.name,
            dry_run=True,
            duration_seconds=time.perf_counter() - started,
        )

    counter = EventCounter()
    if audit:
        run_emit = audit.wrap_emitter(emit, info, params, counter)
    else:
        run_emit = _counting_emitter(emit, counter)

    child = token.child(options.timeout)
    error: GenerateError | None = None
    cleanup_error: CleanupError | None = None
    try:
        try:
            action.generate(child, params, run_emit)
        except Exception as e:
            error = _generate_failure(info, child, e)
        else:
            if child.cancelled:
                error = CancellationError(f"[{info.name}] {child.reason}", action=info.name)
    finally:
        child.release()

        lifecycle.cleanup_result = "ok"
        try:
            action.cleanup()
        except Exception as e:
            cleanup_error = CleanupError(f"[{info.name}] cleanup: {e}", action=info.name)
            lifecycle.cleanup_result = "error"
            lifecycle.cleanup_error = str(e)
            if options.verbose:
                click.secho(f"[{info.name}] cleanup error: {e}", fg="yellow", err=True)

        if audit:
            lifecycle.end_time = utc_now()
            lifecycle.events_emitted = counter.value
            if error is not None:
                lifecycle.generate_error = str(error)
            audit.log_lifecycle(LifecyclePhase.RUN, info, params, lifecycle)

    if error is not None:
        raise error

    return ActionResult(
        action=info.name,
        events_emitted=counter.value,
        cleanup_error=str(cleanup_error) if cleanup_error else None,
        duration_seconds=time.perf_counter() - started,
    )


def run_many(
    actions: Iterable[Action],
    params: Mapping[str, str] | None,
    emit: EmitFn,
    options: RunOptions | None = None,
    token: CancelToken | None = None,
) -> list[ActionResult]:
    """Run *actions* one after another, collecting failures.

    A failing action never stops the batch. The caller's token is checked
    before each action and aborts the remaining ones at once.

    Parameters
    ----------
    actions : Iterable[Action]
        Actions in execution order.
    params : Mapping[str, str] | None
        Parameters passed to every action.
    emit : EmitFn
        Downstream telemetry emitter.
    options : RunOptions | None, optional
        Run options shared by every action.
    token : CancelToken | None, optional
        Caller's cancellation token.

    Returns
    -------
    list[ActionResult]
        One result per action, in order, when every action succeeded.

    Raises
    ------
    CancellationError
        If *token* is cancelled at an action boundary.
    BatchError
        If one or more actions failed; carries ``errors`` and ``results``.
    """
    options = options or RunOptions()
    token = token or CancelToken()
    actions = list(actions)

    results: list[ActionResult] = []
    errors: list[TelenoiseError] = []
    for action in actions:
        token.raise_if_cancelled()
        try:
            results.append(run_single(action, params, emit, options, token))
        except TelenoiseError as e:
            errors.append(e)

    if errors:
        raise BatchError(errors, total=len(actions), results=results)
    return results
