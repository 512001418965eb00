"""Tests for the action lifecycle orchestrator."""

import json
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from telenoise.actions import CancelToken, Params
from telenoise.audit import AuditLogger
from telenoise.engine import ActionResult, RunOptions, run_single
from telenoise.errors import CancellationError, GenerateError, PrerequisiteError


@pytest.fixture
def audit(tmp_path: Path) -> Iterator[AuditLogger]:
    """Audit logger writing to a temporary file."""
    with AuditLogger(tmp_path / "audit.jsonl", version="0.0.1") as lg:
        yield lg


def _read_records(path: Path) -> list[dict]:
    """Read all JSONL records from file."""
    with path.open() as f:
        return [json.loads(line) for line in f if line.strip()]


def _lifecycle(records: list[dict]) -> list[dict]:
    return [r for r in records if r["class_uid"] == 6003]


@pytest.mark.unit
def test_successful_run(make_action: Callable, recorder) -> None:
    """Test prereqs, generate and cleanup run in order and events are forwarded."""
    action = make_action("alpha", events=3)

    result = run_single(action, {"count": "3"}, recorder)

    assert isinstance(result, ActionResult)
    assert action.calls == ["check_prereqs", "generate", "cleanup"]
    assert result.action == "alpha"
    assert result.events_emitted == 3
    assert result.cleanup_error is None
    assert not result.dry_run
    assert [e.message for e in recorder.events] == ["alpha event 0", "alpha event 1", "alpha event 2"]
    assert isinstance(action.seen_params, Params)
    assert action.seen_params == {"count": "3"}


@pytest.mark.unit
def test_none_params_become_empty(make_action: Callable, recorder) -> None:
    """Test missing params are passed as an empty Params mapping."""
    action = make_action()

    run_single(action, None, recorder)

    assert action.seen_params == Params()


@pytest.mark.unit
def test_prereq_failure_skips_everything(make_action: Callable, recorder, audit: AuditLogger) -> None:
    """Test a failing prereq check raises and writes one prereq record."""
    action = make_action("alpha", prereq_error="needs root")

    with pytest.raises(PrerequisiteError, match=r"\[alpha\] prereqs: needs root") as exc_info:
        run_single(action, {}, recorder, RunOptions(audit_logger=audit))

    assert exc_info.value.action == "alpha"
    assert action.calls == ["check_prereqs"]
    assert recorder.events == []

    (record,) = _read_records(audit.log_path)
    assert record["severity_id"] == 2
    assert record["status_id"] == 2
    assert record["message"] == "Module alpha prereq check failed: needs root"
    assert record["unmapped"]["prereq_result"] == "fail"


@pytest.mark.unit
def test_dry_run_describes_and_skips_generate(
    make_action: Callable, recorder, audit: AuditLogger, capsys: pytest.CaptureFixture
) -> None:
    """Test dry run prints planned steps and never generates or cleans up."""
    action = make_action("alpha", planned=("create /tmp/x", "delete /tmp/x"))

    result = run_single(action, {}, recorder, RunOptions(dry_run=True, audit_logger=audit))

    assert result.dry_run
    assert result.events_emitted == 0
    assert action.calls == ["check_prereqs", "dry_run"]
    assert recorder.events == []
    out = capsys.readouterr().out.splitlines()
    assert out == ["[dry-run] [alpha] create /tmp/x", "[dry-run] [alpha] delete /tmp/x"]

    (record,) = _read_records(audit.log_path)
    assert record["message"] == "Module alpha dry-run completed"
    assert record["unmapped"]["dry_run"] is True
    assert record["unmapped"]["prereq_result"] == "pass"


@pytest.mark.unit
def test_dry_run_failure_is_audited_and_wrapped(
    make_action: Callable, recorder, audit: AuditLogger, capsys: pytest.CaptureFixture
) -> None:
    """Test a dry_run that raises becomes a GenerateError with a failed lifecycle record."""
    action = make_action("alpha", dry_run_error=ValueError("plan exploded"))

    with pytest.raises(GenerateError, match=r"\[alpha\] dry-run: plan exploded") as exc_info:
        run_single(action, {}, recorder, RunOptions(dry_run=True, audit_logger=audit))

    assert exc_info.value.action == "alpha"
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert action.calls == ["check_prereqs", "dry_run"]
    assert capsys.readouterr().out == ""

    (record,) = _read_records(audit.log_path)
    assert record["status_id"] == 2
    assert record["message"] == "Module alpha dry-run failed: plan exploded"
    assert record["unmapped"]["dry_run"] is True


@pytest.mark.unit
def test_info_failure_is_wrapped(make_action: Callable, recorder) -> None:
    """Test an action whose info raises fails as a GenerateError before any lifecycle step."""
    action = make_action("alpha", info_error=OSError("metadata unreadable"))

    with pytest.raises(GenerateError, match=r"\[FakeAction\] info: metadata unreadable"):
        run_single(action, {}, recorder)

    assert action.calls == []


@pytest.mark.unit
def test_generate_failure_still_cleans_up(make_action: Callable, recorder, audit: AuditLogger) -> None:
    """Test a generate error is wrapped, cleanup runs, and the record fails."""
    action = make_action("alpha", events=1, generate_error=RuntimeError("boom"))

    with pytest.raises(GenerateError, match=r"^\[alpha\] boom$") as exc_info:
        run_single(action, {}, recorder, RunOptions(audit_logger=audit))

    assert not isinstance(exc_info.value, CancellationError)
    assert action.calls == ["check_prereqs", "generate", "cleanup"]

    records = _read_records(audit.log_path)
    (lifecycle,) = _lifecycle(records)
    assert lifecycle["severity_id"] == 3
    assert lifecycle["status_id"] == 2
    assert lifecycle["message"] == "Module alpha failed: [alpha] boom"
    assert lifecycle["unmapped"]["events_emitted"] == 1
    assert lifecycle["unmapped"]["cleanup_result"] == "ok"


@pytest.mark.unit
def test_generate_error_from_action_kept(make_action: Callable, recorder) -> None:
    """Test a GenerateError raised by the action is passed through and attributed."""
    action = make_action("alpha", generate_error=GenerateError("custom"))

    with pytest.raises(GenerateError, match="^custom$") as exc_info:
        run_single(action, {}, recorder)

    assert exc_info.value.action == "alpha"


@pytest.mark.unit
def test_timeout_cancels_generate(make_action: Callable, recorder) -> None:
    """Test the per-action timeout cancels a cooperative generate."""
    action = make_action("alpha", block=True)
    caller = CancelToken()

    with pytest.raises(CancellationError) as exc_info:
        run_single(action, {}, recorder, RunOptions(timeout=0.05), caller)

    assert exc_info.value.action == "alpha"
    assert action.seen_token is not caller
    assert action.seen_token.timed_out
    assert not caller.cancelled
    assert action.calls[-1] == "cleanup"


@pytest.mark.unit
def test_return_after_deadline_is_cancellation(make_action: Callable, recorder) -> None:
    """Test returning normally after the deadline still counts as cancelled."""
    action = make_action("alpha", sleep=0.3)

    with pytest.raises(CancellationError, match=r"^\[alpha\] deadline exceeded$"):
        run_single(action, {}, recorder, RunOptions(timeout=0.05))


@pytest.mark.unit
def test_error_under_cancelled_token_is_cancellation(make_action: Callable, recorder) -> None:
    """Test an arbitrary error raised while cancelled is reported as cancellation."""
    action = make_action("alpha", generate_error=OSError("socket closed"))
    caller = CancelToken()
    caller.cancel()

    with pytest.raises(CancellationError, match=r"^\[alpha\] cancelled: socket closed$"):
        run_single(action, {}, recorder, token=caller)

    assert action.calls == ["check_prereqs", "generate", "cleanup"]


@pytest.mark.unit
def test_cleanup_failure_reported_not_raised(
    make_action: Callable, recorder, audit: AuditLogger, capsys: pytest.CaptureFixture
) -> None:
    """Test a cleanup error is recorded on the result and in the audit record."""
    action = make_action("alpha", cleanup_error="file busy")

    result = run_single(action, {}, recorder, RunOptions(audit_logger=audit, verbose=True))

    assert result.cleanup_error == "[alpha] cleanup: file busy"
    assert "[alpha] cleanup error: file busy" in capsys.readouterr().err

    (lifecycle,) = _lifecycle(_read_records(audit.log_path))
    assert lifecycle["status_id"] == 1
    assert lifecycle["unmapped"]["cleanup_result"] == "error"
    assert lifecycle["unmapped"]["cleanup_error"] == "file busy"


@pytest.mark.unit
def test_cleanup_failure_quiet_without_verbose(
    make_action: Callable, recorder, capsys: pytest.CaptureFixture
) -> None:
    """Test cleanup failures are not echoed unless verbose."""
    run_single(make_action("alpha", cleanup_error="busy"), {}, recorder)

    assert capsys.readouterr().err == ""


@pytest.mark.unit
def test_generate_error_wins_over_cleanup_error(make_action: Callable, recorder) -> None:
    """Test the generate error is raised when both generate and cleanup fail."""
    action = make_action("alpha", generate_error=RuntimeError("boom"), cleanup_error="busy")

    with pytest.raises(GenerateError, match="boom"):
        run_single(action, {}, recorder)


@pytest.mark.unit
def test_audit_records_events_then_one_lifecycle(make_action: Callable, recorder, audit: AuditLogger) -> None:
    """Test every event is audited and exactly one lifecycle record follows."""
    action = make_action("alpha", events=2, event_type="file_create")

    run_single(action, {"count": "2"}, recorder, RunOptions(audit_logger=audit))

    records = _read_records(audit.log_path)
    assert [r["class_uid"] for r in records] == [1001, 1001, 6003]
    assert records[0]["unmapped"]["params"] == {"count": "2"}
    lifecycle = records[-1]
    assert lifecycle["message"] == "Module alpha completed successfully (2 events emitted)"
    assert lifecycle["unmapped"]["events_emitted"] == 2
    assert lifecycle["duration"] >= 0
    assert len({r["metadata"]["correlation_uid"] for r in records}) == 1


@pytest.mark.unit
def test_scenario_context_stamped(make_action: Callable, recorder, audit: AuditLogger) -> None:
    """Test options carrying a scenario stamp the lifecycle record."""
    options = RunOptions(audit_logger=audit).for_scenario("recon", "recon.yaml")

    run_single(make_action("alpha"), {}, recorder, options)

    (lifecycle,) = _lifecycle(_read_records(audit.log_path))
    assert lifecycle["unmapped"]["scenario_name"] == "recon"
    assert lifecycle["unmapped"]["scenario_file"] == "recon.yaml"


@pytest.mark.unit
def test_run_options_validation() -> None:
    """Test negative timeouts are rejected."""
    with pytest.raises(ValueError, match="timeout"):
        RunOptions(timeout=-1)

    assert RunOptions(timeout=0).to_dict()["audit_log"] is None
