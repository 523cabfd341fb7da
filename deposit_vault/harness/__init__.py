"""
Scenario harness: script vault invocations and check the resulting state.
"""

from .parser import (
    AccountStmt,
    VaultStmt,
    ActionStmt,
    ExpectStmt,
    Scenario,
    ScenarioError,
    parse,
    parse_file,
    validate_scenario,
)
from .runner import (
    StepResult,
    ScenarioReport,
    ScenarioRunner,
    create_bank,
)

__all__ = [
    # Parser
    "AccountStmt",
    "VaultStmt",
    "ActionStmt",
    "ExpectStmt",
    "Scenario",
    "ScenarioError",
    "parse",
    "parse_file",
    "validate_scenario",
    # Runner
    "StepResult",
    "ScenarioReport",
    "ScenarioRunner",
    "create_bank",
]
