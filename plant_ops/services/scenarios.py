# plant_ops/services/scenarios.py
"""
Scenario triggers - the only roster mutations besides executed actions.
"""

from typing import Callable, Dict

from ..models.labor import ProductionLine, WorkerStatus
from .event_logger import log_event
from .roster import RosterService


SURPLUS_EVENT = "SITUATION: 100% Attendance. Identify and reallocate surplus workers to TPM, 5S, or training."
ABSENTEEISM_EVENT = (
    "Line 2 Crisis: 50% Absenteeism. Prioritize P1 continuity by moving surplus workers from other lines."
)
ABSENTEEISM_LINE = "L2"
ABSENTEEISM_MAIN_COUNT = 3


class UnknownScenarioError(KeyError):
    pass


def _mark_all_present(line: ProductionLine) -> None:
    for worker in line.all_workers():
        worker.status = WorkerStatus.PRESENT


def _mark_absenteeism(line: ProductionLine) -> None:
    for worker in line.current_workers[:ABSENTEEISM_MAIN_COUNT]:
        worker.status = WorkerStatus.ABSENT
    for worker in line.buffers:
        worker.status = WorkerStatus.ABSENT


def surplus_optimization(roster: RosterService) -> str:
    """Scenario: full attendance on every line."""
    roster.mutate_all(_mark_all_present)
    return SURPLUS_EVENT


def absenteeism_rebalance(roster: RosterService) -> str:
    """Scenario: L2 loses its first three main workers and all buffers."""
    roster.mutate_line(ABSENTEEISM_LINE, _mark_absenteeism)
    return ABSENTEEISM_EVENT


def reset(roster: RosterService) -> str:
    roster.reset()
    return "Roster reset to shift start."


SCENARIOS: Dict[str, Callable[[RosterService], str]] = {
    "surplus_optimization": surplus_optimization,
    "absenteeism_rebalance": absenteeism_rebalance,
    "reset": reset,
}


def trigger_scenario(roster: RosterService, name: str) -> str:
    """Run a named scenario and return the event text for the next solve."""
    handler = SCENARIOS.get(name)
    if handler is None:
        raise UnknownScenarioError(name)

    event = handler(roster)
    log_event(f"SCENARIO_{name.upper()}", event)
    return event
