import pytest

from plant_ops.models.labor import ActionType, ProductionLine, ProposedAction, Worker, WorkerStatus
from plant_ops.planners.advisor import LaborAdvisor, SuggestionNotFoundError
from plant_ops.planners.base_planner import LaborPlanner
from plant_ops.planners.config import PlannerConfig
from plant_ops.planners.delegated_planner import DelegatedPlanner
from plant_ops.planners.errors import SolveSuperseded, TransportFailure
from plant_ops.services.event_logger import get_events
from plant_ops.services.roster import RosterService, StaleActionError, UnknownLineError
from plant_ops.services.scenarios import UnknownScenarioError, trigger_scenario
from plant_ops.seed_data import build_lines


def _roster(present_by_line=None):
    present_by_line = present_by_line or {"L1": 4, "L2": 2, "L3": 4, "L5": 6}
    lines = [
        ProductionLine(
            id=line_id,
            name=f"Line {line_id}",
            required_manpower=4,
            current_workers=[
                Worker(id=f"{line_id}-{i}", name=f"Op {line_id} {i}", assigned_line=line_id)
                for i in range(1, count + 1)
            ],
        )
        for line_id, count in present_by_line.items()
    ]
    return RosterService(lines)


def _config(**overrides):
    values = dict(MAX_ATTEMPTS=1, BACKOFF_INITIAL_SECONDS=0, BACKOFF_MAX_SECONDS=0)
    values.update(overrides)
    return PlannerConfig(**values)


class _ScriptedClient:
    def __init__(self, reply):
        self.reply = reply

    def is_available(self):
        return True

    def complete_json(self, system_prompt, user_prompt):
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class _ReentrantPlanner(LaborPlanner):
    """Starts a newer solve on the advisor while the first is still in flight."""

    name = "delegated"

    def __init__(self):
        self.advisor = None
        self.calls = 0

    def propose(self, snapshots, event, should_abort=None):
        self.calls += 1
        if self.calls == 1:
            self.advisor.request_suggestions("newer event")
        return []


def _present(roster, line_id):
    return sum(1 for w in roster.line(line_id).all_workers() if w.status == WorkerStatus.PRESENT)


# ---------- roster ----------

def test_roster_versions_bump_only_for_touched_lines():
    roster = _roster()
    before = roster.versions()
    action = ProposedAction(title="m", action=ActionType.MOVE, worker_ids=["L5-6"], worker_names=["Op L5 6"],
                            from_line="L5", to_line="L2")

    roster.apply(action, enforce_versions=False)

    after = roster.versions()
    assert after["L2"] == before["L2"] + 1
    assert after["L5"] == before["L5"] + 1
    assert after["L1"] == before["L1"]


def test_roster_rejects_actions_against_changed_lines():
    roster = _roster()
    action = ProposedAction(title="m", action=ActionType.MOVE, worker_ids=["L5-6"], to_line="L2",
                            from_line="L5", basis_versions=roster.versions())
    roster.mutate_line("L5", lambda line: None)

    with pytest.raises(StaleActionError) as info:
        roster.apply(action)

    assert "L5" in info.value.stale_lines
    assert _present(roster, "L5") == 6


def test_roster_reads_are_copies():
    roster = _roster()
    roster.lines()[0].current_workers.clear()

    assert len(roster.line("L1").current_workers) == 4
    with pytest.raises(UnknownLineError):
        roster.line("L9")


def test_scenarios_mutate_roster_and_reset_restores_seed():
    roster = RosterService(build_lines("A"))

    trigger_scenario(roster, "absenteeism_rebalance")
    assert _present(roster, "L2") == 1

    version = roster.versions()["L2"]
    trigger_scenario(roster, "reset")
    assert _present(roster, "L2") == 6
    assert roster.versions()["L2"] > version

    with pytest.raises(UnknownScenarioError):
        trigger_scenario(roster, "meteor_strike")


# ---------- advisor ----------

def test_local_solver_answers_when_no_delegate():
    advisor = LaborAdvisor(_roster(), config=_config())

    result = advisor.request_suggestions("Line 2 short")

    assert result.source == "local"
    assert len(result.suggestions) == 2
    assert all(s.basis_versions for s in result.suggestions)
    assert advisor.last_event == "Line 2 short"


@pytest.mark.parametrize("reply", [
    TransportFailure("HTTP 503"),
    '{"suggestions": [{"title": "missing metadata"}]}',
])
def test_delegate_failures_fall_back_to_local(reply):
    config = _config()
    delegated = DelegatedPlanner(client=_ScriptedClient(reply), config=config)
    advisor = LaborAdvisor(_roster(), delegated=delegated, config=config)

    result = advisor.request_suggestions("Line 2 short")

    assert result.source == "local"
    assert len(result.suggestions) == 2
    assert get_events(event_type="PLANNER_FALLBACK")


def test_superseded_solve_is_discarded():
    planner = _ReentrantPlanner()
    advisor = LaborAdvisor(_roster(), delegated=planner, config=_config())
    planner.advisor = advisor

    with pytest.raises(SolveSuperseded):
        advisor.request_suggestions("first event")

    assert advisor.last_event == "newer event"
    assert advisor.generation == 2


def test_full_plan_executes_in_order_despite_version_bumps():
    roster = _roster({"L1": 1, "L2": 6, "L3": 6, "L4": 6})
    advisor = LaborAdvisor(roster, config=_config())
    advisor.request_suggestions("")

    while advisor.pending():
        result = advisor.execute(0)
        assert result.applied

    for snap in roster.snapshot():
        assert snap.present == snap.required


def test_execute_removes_the_suggestion_and_logs_it():
    roster = _roster()
    advisor = LaborAdvisor(roster, config=_config())
    advisor.request_suggestions("")

    advisor.execute(1)

    assert len(advisor.pending()) == 1
    assert _present(roster, "L2") == 3
    assert get_events(event_type="LABOR_MOVE")


def test_execute_rejects_stale_suggestions():
    roster = _roster()
    advisor = LaborAdvisor(roster, config=_config())
    advisor.request_suggestions("")
    trigger_scenario(roster, "reset")

    with pytest.raises(StaleActionError):
        advisor.execute(0)

    assert len(advisor.pending()) == 2


def test_stale_suggestions_apply_when_locking_is_off():
    roster = _roster()
    advisor = LaborAdvisor(roster, config=_config(OPTIMISTIC_LOCKING=False))
    advisor.request_suggestions("")
    roster.mutate_line("L2", lambda line: None)

    assert advisor.execute(0).applied


def test_execute_out_of_range():
    advisor = LaborAdvisor(_roster(), config=_config())

    with pytest.raises(SuggestionNotFoundError):
        advisor.execute(0)


def test_task_group_spanning_two_lines_is_stamped_for_both():
    roster = _roster({"L1": 5, "L2": 5})
    advisor = LaborAdvisor(roster, config=_config())

    result = advisor.request_suggestions("")

    (task,) = result.suggestions
    assert task.worker_ids == ["L1-5", "L2-5"]
    assert set(task.basis_versions) == {"L1", "L2"}

    roster.mutate_line("L2", lambda line: None)
    with pytest.raises(StaleActionError) as info:
        advisor.execute(0)
    assert list(info.value.stale_lines) == ["L2"]
