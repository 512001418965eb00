"""Action orchestration: lifecycle, batches, and scenarios.

Main Components
---------------
- run_single: Drives one action through prereqs, generate, and cleanup
- run_many: Sequential batch with aggregated failures
- run_scenario: Ordered YAML-defined steps with one summary audit record
"""

from telenoise.engine.config import ActionResult, RunOptions, ScenarioResult
from telenoise.engine.runner import run_many, run_single
from telenoise.engine.scenario import (
    Scenario,
    ScenarioStep,
    load_scenario,
    parse_scenario,
    run_scenario,
)

__all__ = [
    "ActionResult",
    "RunOptions",
    "Scenario",
    "ScenarioResult",
    "ScenarioStep",
    "load_scenario",
    "parse_scenario",
    "run_many",
    "run_scenario",
    "run_single",
]
