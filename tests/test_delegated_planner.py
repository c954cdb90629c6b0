import json

import pytest

from plant_ops.models.labor import ActionType, ProductionLine, Worker
from plant_ops.planners.config import PlannerConfig
from plant_ops.planners.delegated_planner import DelegatedPlanner, parse_planner_response
from plant_ops.planners.errors import PlannerUnavailable, SchemaViolation, SolveSuperseded, TransportFailure
from plant_ops.services.snapshot import build_snapshots


class _StubClient:
    """Plays back queued responses; exceptions in the queue are raised."""

    def __init__(self, *responses, available=True):
        self.responses = list(responses)
        self.available = available
        self.calls = 0

    def is_available(self):
        return self.available

    def complete_json(self, system_prompt, user_prompt):
        self.calls += 1
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


def _config(**overrides):
    values = dict(MAX_ATTEMPTS=3, BACKOFF_INITIAL_SECONDS=0, BACKOFF_MAX_SECONDS=0, TOTAL_BUDGET_SECONDS=5)
    values.update(overrides)
    return PlannerConfig(**values)


def _snapshots():
    lines = []
    for line_id, present in (("L1", 4), ("L2", 2), ("L5", 6)):
        lines.append(ProductionLine(
            id=line_id,
            name=f"Line {line_id}",
            required_manpower=4,
            current_workers=[
                Worker(id=f"{line_id}-{i}", name=f"Op {line_id} {i}", assigned_line=line_id)
                for i in range(1, present + 1)
            ],
        ))
    return build_snapshots(lines)


def _move(names, from_line="L5", to_line="L2"):
    return {
        "title": "Gap coverage",
        "description": "fill L2",
        "executionMetadata": {"action": "MOVE", "workerNames": names, "fromLine": from_line, "toLine": to_line},
    }


def _response(*suggestions):
    return json.dumps({"suggestions": list(suggestions)})


GOOD = _response(_move(["Op L5 5"]), _move(["op l5  6"]))


def test_parse_resolves_names_to_snapshot_ids():
    actions = parse_planner_response(GOOD, _snapshots())

    assert [a.action for a in actions] == [ActionType.MOVE, ActionType.MOVE]
    assert [a.worker_ids for a in actions] == [["L5-5"], ["L5-6"]]
    assert actions[1].to_line == "L2"


def test_parse_rejects_malformed_json():
    with pytest.raises(SchemaViolation):
        parse_planner_response("{not json", _snapshots())


def test_parse_rejects_move_without_destination():
    raw = _response(_move(["Op L5 5"], to_line=None))

    with pytest.raises(SchemaViolation):
        parse_planner_response(raw, _snapshots())


def test_parse_rejects_unknown_workers():
    raw = _response(_move(["Ghost Worker"]), _move(["Op L5 6"]))

    with pytest.raises(SchemaViolation):
        parse_planner_response(raw, _snapshots())


def test_parse_rejects_plans_that_break_the_contract():
    # L1 is exactly at required; it cannot donate
    raw = _response(_move(["Op L1 4"], from_line="L1"), _move(["Op L5 6"]))

    with pytest.raises(SchemaViolation) as info:
        parse_planner_response(raw, _snapshots())

    assert info.value.problems


def test_propose_retries_transport_failures_then_succeeds():
    client = _StubClient(TransportFailure("timeout"), TransportFailure("HTTP 429"), GOOD)
    planner = DelegatedPlanner(client=client, config=_config())

    actions = planner.propose(_snapshots(), "Line 2 short")

    assert client.calls == 3
    assert len(actions) == 2


def test_propose_gives_up_after_max_attempts():
    client = _StubClient(TransportFailure("connection reset"))
    planner = DelegatedPlanner(client=client, config=_config(MAX_ATTEMPTS=2))

    with pytest.raises(TransportFailure):
        planner.propose(_snapshots(), "")

    assert client.calls == 2


def test_schema_violations_are_retried_too():
    client = _StubClient("[]", GOOD)
    planner = DelegatedPlanner(client=client, config=_config())

    assert len(planner.propose(_snapshots(), "")) == 2
    assert client.calls == 2


def test_propose_stops_when_superseded():
    client = _StubClient(GOOD)
    planner = DelegatedPlanner(client=client, config=_config())

    with pytest.raises(SolveSuperseded):
        planner.propose(_snapshots(), "", should_abort=lambda: True)

    assert client.calls == 0


def test_disabled_planner_is_unavailable():
    planner = DelegatedPlanner(client=_StubClient(GOOD), config=_config(LLM_ENABLED=False))

    assert not planner.is_available()
    with pytest.raises(PlannerUnavailable):
        planner.propose(_snapshots(), "")
