"""Command-line interface for telenoise.

Provides CLI commands for running actions, scenarios, and inspecting the
action catalog.
"""

import importlib.metadata
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import click

from telenoise.actions import CancelToken, Category, Params
from telenoise.audit import AuditLogger
from telenoise.config import Config, load_config
from telenoise.engine import RunOptions, load_scenario, run_many, run_scenario, run_single
from telenoise.errors import ActionLookupError, ConfigurationError, TelenoiseError
from telenoise.modules import build_registry
from telenoise.telemetry import EventSink, OutputFormat

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("telenoise")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development


@dataclass
class CLIState:
    """Global options merged over the config file."""

    config: Config
    output_format: str
    output_file: str
    verbose: bool
    dry_run: bool
    timeout: int
    audit_log: str


def _fail(error: Exception) -> NoReturn:
    click.secho(f"Error: {error}", fg="red", err=True)
    sys.exit(1)


@contextmanager
def _cancel_on_signals(token: CancelToken) -> Iterator[None]:
    """Cancel *token* on SIGINT/SIGTERM; a second signal gets default handling."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    watched = (signal.SIGINT, signal.SIGTERM)
    previous = {sig: signal.getsignal(sig) for sig in watched}

    def handler(signum: int, frame: Any) -> None:
        click.echo(f"\nReceived {signal.Signals(signum).name}, cancelling...", err=True)
        token.cancel()
        for sig, prev in previous.items():
            signal.signal(sig, prev)

    for sig in watched:
        signal.signal(sig, handler)
    try:
        yield
    finally:
        for sig, prev in previous.items():
            signal.signal(sig, prev)


@contextmanager
def _session(state: CLIState, audit_log: str, continue_on_error: bool = False) -> Iterator[tuple]:
    """Open the telemetry sink and audit logger for one command.

    Yields
    ------
    tuple[EventSink, RunOptions, CancelToken]
        Sink, run options, and the root cancellation token.
    """
    with ExitStack() as stack:
        streams = [sys.stdout]
        if state.output_file:
            output_path = Path(state.output_file)
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                streams.append(stack.enter_context(output_path.open("a", encoding="utf-8")))
            except OSError as e:
                raise ConfigurationError(f"output: open {output_path}: {e}") from e
        sink = EventSink(state.output_format, *streams)

        audit_logger = None
        if audit_log:
            try:
                audit_logger = stack.enter_context(AuditLogger(Path(audit_log), version=__version__))
            except OSError as e:
                raise ConfigurationError(f"audit: open {audit_log}: {e}") from e

        options = RunOptions(
            dry_run=state.dry_run,
            timeout=state.timeout,
            verbose=state.verbose,
            audit_logger=audit_logger,
            continue_on_error=continue_on_error,
        )
        token = CancelToken()
        stack.enter_context(_cancel_on_signals(token))
        yield sink, options, token


@click.group()
@click.version_option(version=__version__, prog_name="telenoise")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=None,
    help="Telemetry output format (default: from config, else human)",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Also write telemetry to FILE")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--dry-run", is_flag=True, help="Describe planned operations without performing them")
@click.option(
    "--timeout",
    type=click.IntRange(min=0),
    default=None,
    help="Per-action timeout in seconds, 0 for none (default: from config, else 30)",
)
@click.option("--audit-log", type=click.Path(dir_okay=False), default=None, help="Write OCSF audit records to FILE")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="YAML config file")
@click.pass_context
def cli(
    ctx: click.Context,
    output_format: str | None,
    output: str | None,
    verbose: bool,
    dry_run: bool,
    timeout: int | None,
    audit_log: str | None,
    config_path: str | None,
) -> None:
    """Generate attributable endpoint telemetry for detection validation.

    Use 'telenoise COMMAND --help' for command-specific help.
    """
    try:
        config = load_config(config_path)
    except TelenoiseError as e:
        _fail(e)

    ctx.obj = CLIState(
        config=config,
        output_format=output_format or config.default_format,
        output_file=output or config.output_file,
        verbose=verbose,
        dry_run=dry_run,
        timeout=config.default_timeout if timeout is None else timeout,
        audit_log=audit_log or "",
    )


@cli.command()
@click.argument("action_name", required=False)
@click.option("--param", "-p", "params", multiple=True, metavar="KEY=VALUE", help="Action parameter (repeatable)")
@click.option("--category", "-c", type=click.Choice([c.value for c in Category]), help="Run every action in CATEGORY")
@click.option("--all", "run_all", is_flag=True, help="Run every registered action")
@click.pass_obj
def run(
    state: CLIState,
    action_name: str | None,
    params: tuple[str, ...],
    category: str | None,
    run_all: bool,
) -> None:
    """Run one action, a category of actions, or all of them.

    Examples
    --------
        telenoise run net_connect -p target=10.0.0.1 -p port=443
        telenoise --dry-run run --category file
        telenoise --format jsonl --audit-log audit.jsonl run --all
    """
    selected = sum(bool(x) for x in (action_name, category, run_all))
    if selected != 1:
        raise click.UsageError("Specify exactly one of ACTION_NAME, --category, or --all")

    registry = build_registry()
    action_params = Params.from_pairs(params)

    try:
        if action_name:
            actions = [registry.require(action_name)]
        else:
            actions = registry.all() if run_all else registry.by_category(category)
            if not actions:
                raise ActionLookupError(f"no actions found for category {category!r}")

        with _session(state, state.audit_log or state.config.audit_log) as (sink, options, token):
            if action_name:
                run_single(actions[0], action_params, sink.emit_func(), options, token)
            else:
                run_many(actions, action_params, sink.emit_func(), options, token)
    except TelenoiseError as e:
        _fail(e)


@cli.command(name="list")
@click.option("--category", "-c", type=click.Choice([c.value for c in Category]), help="Only list CATEGORY")
@click.option("--tag", "-t", help="Only list actions carrying TAG")
def list_actions(category: str | None, tag: str | None) -> None:
    """List registered actions."""
    registry = build_registry()
    actions = registry.by_tag(tag) if tag else registry.all()
    if category:
        actions = [a for a in actions if a.info().category == category]

    if not actions:
        click.echo("No actions found.")
        return

    click.echo(f"{'NAME':<16} {'CATEGORY':<18} {'PRIVILEGES':<10} DESCRIPTION")
    for action in actions:
        meta = action.info()
        click.echo(f"{meta.name:<16} {meta.category.value:<18} {meta.privileges.value:<10} {meta.description}")


@cli.command()
@click.argument("action_name")
def info(action_name: str) -> None:
    """Show details and parameters of ACTION_NAME."""
    try:
        action = build_registry().require(action_name)
    except TelenoiseError as e:
        _fail(e)

    meta = action.info()
    click.secho(meta.name, bold=True)
    click.echo(f"  Description: {meta.description}")
    click.echo(f"  Category:    {meta.category.value}")
    click.echo(f"  Privileges:  {meta.privileges.value}")
    if meta.min_os_version:
        click.echo(f"  Min OS:      {meta.min_os_version}")
    if meta.author:
        click.echo(f"  Author:      {meta.author}")
    if meta.tags:
        click.echo(f"  Tags:        {', '.join(meta.tags)}")

    if meta.techniques:
        click.echo("  MITRE ATT&CK:")
        for ref in meta.techniques:
            click.echo(f"    {ref.technique}{ref.sub_technique}  {ref.name}")

    specs = action.param_specs()
    if specs:
        click.echo("  Parameters:")
        for spec in specs:
            required = " (required)" if spec.required else ""
            click.echo(f"    {spec.name}{required}: {spec.description}")
            click.echo(f"      default: {spec.default!r}  example: {spec.example!r}")


@cli.command()
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--continue-on-error", is_flag=True, help="Run every step even after one fails")
@click.pass_obj
def scenario(state: CLIState, scenario_file: str, continue_on_error: bool) -> None:
    """Run the YAML scenario in SCENARIO_FILE.

    Examples
    --------
        telenoise scenario scenarios/recon.yaml
        telenoise --audit-log audit.jsonl scenario recon.yaml --continue-on-error
    """
    try:
        loaded = load_scenario(scenario_file)
        audit_log = state.audit_log or loaded.audit_log or state.config.audit_log
        continue_on_error = continue_on_error or state.config.continue_on_error

        with _session(state, audit_log, continue_on_error) as (sink, options, token):
            result = run_scenario(loaded, build_registry(), sink.emit_func(), options, token)
    except TelenoiseError as e:
        _fail(e)

    click.secho(
        f"✓ Scenario {result.name!r}: {result.steps_passed}/{result.total_steps} steps passed",
        fg="green",
    )


@cli.command()
def categories() -> None:
    """Show the number of registered actions per category."""
    counts = build_registry().category_counts()
    for category in Category:
        click.echo(f"{category.value:<18} {counts.get(category, 0)}")


@cli.command()
def version() -> None:
    """Show the telenoise version."""
    click.echo(f"telenoise {__version__}")


if __name__ == "__main__":
    cli()
