"""Tests for CLI module."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from telenoise.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Provide Click test CLI runner."""
    return CliRunner()


def _json_lines(output: str) -> list[dict]:
    """Parse the JSON lines of mixed CLI output."""
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def _read_records(path: Path) -> list[dict]:
    """Read all JSONL records from file."""
    with path.open() as f:
        return [json.loads(line) for line in f if line.strip()]


# ---------------------------------------------------------------------------
# Top-level CLI
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_cli_version_flag(runner: CliRunner) -> None:
    """Test --version flag outputs version string."""
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "telenoise" in result.output


@pytest.mark.unit
def test_cli_help_lists_commands(runner: CliRunner) -> None:
    """Test --help output lists commands."""
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("run", "list", "info", "scenario", "categories", "version"):
        assert command in result.output


@pytest.mark.unit
def test_cli_invalid_command(runner: CliRunner) -> None:
    """Test invalid command returns non-zero exit code."""
    result = runner.invoke(cli, ["invalid-command"])

    assert result.exit_code != 0


@pytest.mark.unit
def test_version_command(runner: CliRunner) -> None:
    """Test version subcommand."""
    result = runner.invoke(cli, ["version"])

    assert result.exit_code == 0
    assert result.output.startswith("telenoise ")


@pytest.mark.unit
def test_invalid_config_exits_one(runner: CliRunner, tmp_path: Path) -> None:
    """Test an invalid config file is reported and exits 1."""
    config = tmp_path / "config.yaml"
    config.write_text("default_format: xml\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config), "list"])

    assert result.exit_code == 1
    assert "Error: config: default_format" in result.output


# ---------------------------------------------------------------------------
# list / info / categories
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_list_all(runner: CliRunner) -> None:
    """Test list shows every built-in action in name order."""
    result = runner.invoke(cli, ["list"])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].split() == ["NAME", "CATEGORY", "PRIVILEGES", "DESCRIPTION"]
    names = [line.split()[0] for line in lines[1:]]
    assert names == ["file_create", "file_modify", "net_connect", "net_dns", "net_listen", "proc_spawn"]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (["--category", "network"], ["net_connect", "net_dns", "net_listen"]),
        (["--tag", "dns"], ["net_dns"]),
        (["--category", "file", "--tag", "delete"], ["file_modify"]),
    ],
)
def test_list_filters(runner: CliRunner, args: list[str], expected: list[str]) -> None:
    """Test list filters by category and tag."""
    result = runner.invoke(cli, ["list", *args])

    assert result.exit_code == 0
    assert [line.split()[0] for line in result.output.splitlines()[1:]] == expected


@pytest.mark.unit
def test_list_no_match(runner: CliRunner) -> None:
    """Test an empty listing prints a notice."""
    result = runner.invoke(cli, ["list", "--category", "xpc"])

    assert result.exit_code == 0
    assert "No actions found." in result.output


@pytest.mark.unit
def test_info_shows_metadata_and_params(runner: CliRunner) -> None:
    """Test info prints techniques and parameters."""
    result = runner.invoke(cli, ["info", "net_dns"])

    assert result.exit_code == 0
    assert "T1071.004" in result.output
    assert "domains" in result.output
    assert "Category:    network" in result.output


@pytest.mark.unit
def test_info_unknown_action(runner: CliRunner) -> None:
    """Test info on an unknown action exits 1."""
    result = runner.invoke(cli, ["info", "nope"])

    assert result.exit_code == 1
    assert "Error: action 'nope' not found" in result.output


@pytest.mark.unit
def test_categories_counts(runner: CliRunner) -> None:
    """Test categories prints one line per category with its count."""
    result = runner.invoke(cli, ["categories"])

    assert result.exit_code == 0
    counts = dict(line.split() for line in result.output.splitlines())
    assert counts["network"] == "3"
    assert counts["file"] == "2"
    assert counts["process"] == "1"
    assert counts["xpc"] == "0"
    assert len(counts) == 8


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("args", [[], ["file_create", "--all"], ["--all", "--category", "file"]])
def test_run_requires_exactly_one_selector(runner: CliRunner, args: list[str]) -> None:
    """Test run rejects zero or several selectors as a usage error."""
    result = runner.invoke(cli, ["run", *args])

    assert result.exit_code == 2
    assert "exactly one of" in result.output


@pytest.mark.unit
def test_run_unknown_action(runner: CliRunner) -> None:
    """Test running an unknown action exits 1."""
    result = runner.invoke(cli, ["run", "nope"])

    assert result.exit_code == 1
    assert "Error: action 'nope' not found" in result.output


@pytest.mark.unit
def test_run_single_jsonl_with_audit(runner: CliRunner, tmp_path: Path) -> None:
    """Test a real run writes JSONL telemetry, an output copy, and audit records."""
    out_dir = tmp_path / "files"
    output = tmp_path / "events.jsonl"
    audit = tmp_path / "audit.jsonl"

    result = runner.invoke(
        cli,
        [
            "--format", "jsonl",
            "-o", str(output),
            "--audit-log", str(audit),
            "run", "file_create",
            "-p", f"base_dir={out_dir}",
            "-p", "count=2",
        ],
    )

    assert result.exit_code == 0, result.output
    events = _json_lines(result.output)
    assert [e["event_type"] for e in events] == ["file_create", "file_create"]
    assert _read_records(output) == events
    assert list(out_dir.iterdir()) == []

    records = _read_records(audit)
    assert [r["class_uid"] for r in records] == [1001, 1001, 6003]
    assert records[-1]["unmapped"]["params"] == {"base_dir": str(out_dir), "count": "2"}


@pytest.mark.unit
def test_run_dry_run_all(runner: CliRunner, tmp_path: Path) -> None:
    """Test a dry run of every action only prints plans."""
    audit = tmp_path / "audit.jsonl"

    result = runner.invoke(cli, ["--dry-run", "--audit-log", str(audit), "run", "--all"])

    assert result.exit_code == 0, result.output
    assert "[dry-run] [net_dns] DNS resolve:" in result.output
    assert "[dry-run] [proc_spawn] exec:" in result.output
    records = _read_records(audit)
    assert len(records) == 6
    assert all(r["unmapped"]["dry_run"] for r in records)


@pytest.mark.unit
def test_run_category_failure_exits_one(runner: CliRunner, tmp_path: Path) -> None:
    """Test a failing action in a batch is reported and exits 1."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    result = runner.invoke(
        cli,
        ["run", "--category", "file", "-p", f"base_dir={blocker}", "-p", f"target_path={tmp_path / 't.txt'}"],
    )

    assert result.exit_code == 1
    assert "Error: 1 of 2 action(s) failed: [file_create]" in result.output


@pytest.mark.unit
def test_config_supplies_defaults(runner: CliRunner, tmp_path: Path) -> None:
    """Test config values apply when flags are absent."""
    audit = tmp_path / "audit.jsonl"
    config = tmp_path / "config.yaml"
    config.write_text(f"default_format: jsonl\naudit_log: {audit}\n", encoding="utf-8")

    result = runner.invoke(
        cli,
        ["--config", str(config), "run", "file_modify", "-p", f"target_path={tmp_path / 'x.txt'}"],
    )

    assert result.exit_code == 0, result.output
    assert len(_json_lines(result.output)) == 4
    assert len(_read_records(audit)) == 5


# ---------------------------------------------------------------------------
# scenario command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_scenario_success(runner: CliRunner, tmp_path: Path) -> None:
    """Test a scenario runs and uses its own audit log."""
    audit = tmp_path / "scenario-audit.jsonl"
    scenario = tmp_path / "files.yaml"
    scenario.write_text(
        "name: files\n"
        f"audit_log: {audit}\n"
        "steps:\n"
        "  - action: file_create\n"
        "    params:\n"
        f"      base_dir: {tmp_path / 'out'}\n"
        "      count: 1\n",
        encoding="utf-8",
    )

    result = runner.invoke(cli, ["scenario", str(scenario)])

    assert result.exit_code == 0, result.output
    assert "Running scenario: files" in result.output
    assert "Scenario 'files': 1/1 steps passed" in result.output
    summary = _read_records(audit)[-1]
    assert summary["unmapped"]["scenario_name"] == "files"
    assert summary["unmapped"]["total_steps"] == 1


@pytest.mark.unit
def test_scenario_audit_log_directory_exits_one(runner: CliRunner, tmp_path: Path) -> None:
    """Test an audit_log path that cannot be opened is reported as an error."""
    audit_dir = tmp_path / "audit"
    audit_dir.mkdir()
    scenario = tmp_path / "files.yaml"
    scenario.write_text(
        f"audit_log: {audit_dir}\n"
        "steps:\n"
        "  - action: file_create\n"
        "    params:\n"
        f"      base_dir: {tmp_path / 'out'}\n",
        encoding="utf-8",
    )

    result = runner.invoke(cli, ["scenario", str(scenario)])

    assert result.exit_code == 1
    assert f"Error: audit: open {audit_dir}:" in result.output
    assert not (tmp_path / "out").exists()


@pytest.mark.unit
def test_scenario_continue_on_error_flag(runner: CliRunner, tmp_path: Path) -> None:
    """Test --continue-on-error runs every step and reports the failure count."""
    scenario = tmp_path / "mixed.yaml"
    scenario.write_text(
        "steps:\n"
        "  - action: missing_action\n"
        "  - action: file_create\n"
        "    params:\n"
        f"      base_dir: {tmp_path / 'out'}\n",
        encoding="utf-8",
    )

    result = runner.invoke(cli, ["scenario", str(scenario), "--continue-on-error"])

    assert result.exit_code == 1
    assert "step 1 error:" in result.output
    assert "[+]" in result.output
    assert "Error: scenario 'mixed': 1 of 2 step(s) failed" in result.output


@pytest.mark.unit
def test_scenario_invalid_file(runner: CliRunner, tmp_path: Path) -> None:
    """Test a malformed scenario exits 1 before running anything."""
    scenario = tmp_path / "bad.yaml"
    scenario.write_text("steps:\n  - action: a\n    category: file\n", encoding="utf-8")

    result = runner.invoke(cli, ["scenario", str(scenario)])

    assert result.exit_code == 1
    assert "must specify exactly one of 'action' or 'category'" in result.output


@pytest.mark.unit
def test_scenario_missing_file(runner: CliRunner, tmp_path: Path) -> None:
    """Test a missing scenario path is a usage error."""
    result = runner.invoke(cli, ["scenario", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 2
