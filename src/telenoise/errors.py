"""Exception hierarchy for telenoise.

Every error raised by the orchestration layer derives from
``TelenoiseError``. The hierarchy mirrors the lifecycle phases so callers
can decide which failures abort a run and which only fail one action.
"""

from __future__ import annotations

__all__ = [
    "TelenoiseError",
    "ConfigurationError",
    "DuplicateActionError",
    "ActionLookupError",
    "PrerequisiteError",
    "GenerateError",
    "CancellationError",
    "CleanupError",
    "BatchError",
    "ScenarioError",
]


class TelenoiseError(Exception):
    """Base class for all telenoise errors."""

    def __init__(self, message: str, action: str | None = None) -> None:
        """Initialize error.

        Parameters
        ----------
        message : str
            Error message.
        action : str | None, optional
            Name of the action the error refers to.
        """
        super().__init__(message)
        self.action = action


class ConfigurationError(TelenoiseError):
    """Raised for unreadable or malformed configuration and scenario files."""


class DuplicateActionError(ConfigurationError):
    """Raised when two actions are registered under the same name."""


class ActionLookupError(TelenoiseError, LookupError):
    """Raised when an action name or category resolves to nothing."""


class PrerequisiteError(TelenoiseError):
    """Raised when an action cannot safely run on this host."""


class GenerateError(TelenoiseError):
    """Raised when an action's core work fails."""


class CancellationError(GenerateError):
    """Raised when work is cancelled by a timeout or by the caller."""


class CleanupError(TelenoiseError):
    """Reported when an action's cleanup fails.

    Cleanup errors are recorded on results and in the audit log; the
    orchestrator never raises them in place of a generate failure.
    """


class BatchError(TelenoiseError):
    """Aggregate error for a batch where one or more actions failed.

    Attributes
    ----------
    errors : list[TelenoiseError]
        Per-action errors, in execution order.
    total : int
        Number of actions in the batch.
    results : list
        Results of the actions that succeeded.
    """

    def __init__(
        self,
        errors: list[TelenoiseError],
        total: int,
        results: list | None = None,
    ) -> None:
        details = "; ".join(str(e) for e in errors)
        super().__init__(f"{len(errors)} of {total} action(s) failed: {details}")
        self.errors = errors
        self.total = total
        self.results = results or []


class ScenarioError(TelenoiseError):
    """Aggregate error for a scenario where one or more steps failed.

    Attributes
    ----------
    scenario : str
        Scenario name.
    failed : int
        Number of failed steps.
    total : int
        Number of declared steps.
    errors : list[TelenoiseError]
        Per-step errors, in execution order.
    """

    def __init__(
        self,
        scenario: str,
        failed: int,
        total: int,
        errors: list[TelenoiseError] | None = None,
    ) -> None:
        super().__init__(f"scenario {scenario!r}: {failed} of {total} step(s) failed")
        self.scenario = scenario
        self.failed = failed
        self.total = total
        self.errors = errors or []
