"""YAML-driven scenario loading and execution.

A scenario is a named, ordered list of steps. Each step runs either one
action by name or every action of a category, with its own parameters.

Example
-------
    name: recon-basics
    description: Network and process noise
    continue_on_error: true
    steps:
      - action: net_dns
        params:
          domains: example.com
      - category: file
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click
import jsonschema
import yaml

from telenoise.actions.base import EmitFn, Params
from telenoise.actions.cancellation import CancelToken
from telenoise.actions.registry import ActionRegistry
from telenoise.audit.models import LifecycleData
from telenoise.engine.config import RunOptions, ScenarioResult
from telenoise.engine.runner import run_many, run_single
from telenoise.errors import ActionLookupError, ConfigurationError, ScenarioError, TelenoiseError
from telenoise.utils import load_schema, utc_now

__all__ = ["Scenario", "ScenarioStep", "load_scenario", "parse_scenario", "run_scenario"]


@dataclass(frozen=True)
class ScenarioStep:
    """One scenario step: an action name or a category, plus parameters.

    Exactly one of ``action`` and ``category`` is non-empty.
    Files may spell ``action`` as ``module``.
    """

    action: str = ""
    category: str = ""
    params: Params = field(default_factory=Params)

    def describe(self) -> str:
        if self.action:
            return f"action {self.action!r}"
        return f"category {self.category!r}"


@dataclass(frozen=True)
class Scenario:
    """Loaded, read-only scenario.

    Attributes
    ----------
    name : str
        Scenario name.
    steps : tuple[ScenarioStep, ...]
        Steps in execution order; never empty.
    description : str
        Human description.
    audit_log : str
        Audit log path override, empty if unset.
    continue_on_error : bool
        Keep running steps after one fails.
    path : str
        File the scenario was loaded from.
    """

    name: str
    steps: tuple[ScenarioStep, ...]
    description: str = ""
    audit_log: str = ""
    continue_on_error: bool = False
    path: str = ""


def _param_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_scenario(data: Any, path: str = "<scenario>") -> Scenario:
    """Validate a parsed scenario document and build a ``Scenario``.

    Parameters
    ----------
    data : Any
        Parsed YAML document.
    path : str, optional
        Source path, used in error messages.

    Returns
    -------
    Scenario
        Validated scenario.

    Raises
    ------
    ConfigurationError
        If the document is not a mapping, violates the scenario schema,
        has no steps, or has a step naming both or neither of ``action``
        and ``category``. ``module`` is accepted as an alias for ``action``.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"scenario: {path} must be a mapping")

    try:
        jsonschema.validate(instance=data, schema=load_schema("scenario"))
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigurationError(f"scenario: {path}: {location}: {e.message}") from e

    raw_steps = data.get("steps") or []
    if not raw_steps:
        raise ConfigurationError(f"scenario: {path} contains no steps")

    steps = []
    for index, raw in enumerate(raw_steps, start=1):
        selectors = [key for key in ("action", "module", "category") if raw.get(key)]
        if len(selectors) != 1:
            raise ConfigurationError(
                f"scenario: {path}: step {index} must specify exactly one of 'action' or 'category'"
            )
        action = raw.get("action") or raw.get("module") or ""
        category = raw.get("category") or ""
        params = Params({str(k): _param_value(v) for k, v in (raw.get("params") or {}).items()})
        steps.append(ScenarioStep(action=action, category=category, params=params))

    return Scenario(
        name=data.get("name") or Path(path).stem,
        steps=tuple(steps),
        description=data.get("description") or "",
        audit_log=data.get("audit_log") or "",
        continue_on_error=bool(data.get("continue_on_error", False)),
        path=path,
    )


def load_scenario(path: Path | str) -> Scenario:
    """Read and validate a YAML scenario file.

    Parameters
    ----------
    path : Path | str
        Scenario file.

    Returns
    -------
    Scenario
        Validated scenario.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed, or fails validation.
    """
    path = str(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"scenario: read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"scenario: parse {path}: {e}") from e

    return parse_scenario(data, path)


def _run_step(
    index: int,
    step: ScenarioStep,
    registry: ActionRegistry,
    emit: EmitFn,
    options: RunOptions,
    token: CancelToken,
) -> None:
    if step.action:
        try:
            action = registry.require(step.action)
        except ActionLookupError as e:
            raise ActionLookupError(f"scenario step {index}: {e}", action=step.action) from e
        run_single(action, step.params, emit, options, token)
        return

    actions = registry.by_category(step.category)
    if not actions:
        raise ActionLookupError(
            f"scenario step {index}: no actions found for category {step.category!r}"
        )
    run_many(actions, step.params, emit, options, token)


def run_scenario(
    source: Scenario | Path | str,
    registry: ActionRegistry,
    emit: EmitFn,
    options: RunOptions | None = None,
    token: CancelToken | None = None,
) -> ScenarioResult:
    """Execute a scenario's steps in order.

    Without ``continue_on_error`` (from *options* or the scenario file) the
    first failing step aborts the run and its error is raised. Otherwise
    every step runs and a ``ScenarioError`` is raised at the end if any
    failed. When an audit logger is configured, one summary record is
    written per run, aborted runs included.

    Parameters
    ----------
    source : Scenario | Path | str
        Loaded scenario or path to a scenario file.
    registry : ActionRegistry
        Registry used to resolve step actions and categories.
    emit : EmitFn
        Downstream telemetry emitter.
    options : RunOptions | None, optional
        Run options; copied per step with the scenario name and file set.
    token : CancelToken | None, optional
        Caller's cancellation token, checked before each step.

    Returns
    -------
    ScenarioResult
        Step counts for a run with no failed steps.

    Raises
    ------
    ConfigurationError
        If *source* is a path that fails to load.
    CancellationError
        If *token* is cancelled at a step boundary.
    ScenarioError
        If steps failed while errors were tolerated.
    TelenoiseError
        The first step error, when errors are not tolerated.
    """
    options = options or RunOptions()
    token = token or CancelToken()
    scenario = source if isinstance(source, Scenario) else load_scenario(source)
    continue_on_error = options.continue_on_error or scenario.continue_on_error
    step_options = options.for_scenario(scenario.name, scenario.path)
    audit = options.audit_logger

    click.echo(f"Running scenario: {scenario.name}")
    if scenario.description:
        click.echo(f"  {scenario.description}")

    summary = LifecycleData(
        start_time=utc_now(),
        total_steps=len(scenario.steps),
        scenario_name=scenario.name,
        scenario_file=scenario.path,
    )
    errors: list[TelenoiseError] = []
    failure = ""
    try:
        for index, step in enumerate(scenario.steps, start=1):
            token.raise_if_cancelled()
            try:
                _run_step(index, step, registry, emit, step_options, token)
            except TelenoiseError as e:
                summary.steps_failed += 1
                errors.append(e)
                if not continue_on_error:
                    raise
                click.secho(f"step {index} error: {e}", fg="red", err=True)
            else:
                summary.steps_passed += 1
    except TelenoiseError as e:
        failure = str(e)
        raise
    finally:
        if audit:
            summary.end_time = utc_now()
            if not failure and summary.steps_failed:
                failure = f"{summary.steps_failed} step(s) failed"
            summary.generate_error = failure
            audit.log_scenario(scenario.name, scenario.path, summary)

    if errors:
        raise ScenarioError(scenario.name, len(errors), len(scenario.steps), errors)

    return ScenarioResult(
        name=scenario.name,
        path=scenario.path,
        steps_passed=summary.steps_passed,
        steps_failed=summary.steps_failed,
        total_steps=summary.total_steps,
    )
