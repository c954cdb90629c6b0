from plant_ops.models.labor import ActionType, ProductionLine, ProposedAction, Worker, WorkerStatus, WorkerType
from plant_ops.services.executor import apply_action, normalize_name, task_status


def _lines():
    return [
        ProductionLine(
            id="L1",
            name="Trim Line",
            required_manpower=2,
            current_workers=[
                Worker(id="W1", name="John Smith", assigned_line="L1"),
                Worker(id="W2", name="Priya Rao", assigned_line="L1"),
            ],
            buffers=[Worker(id="W3", name="Ravi Shah", assigned_line="L1", worker_type=WorkerType.BUFFER)],
        ),
        ProductionLine(
            id="L2",
            name="Chassis Line",
            required_manpower=2,
            current_workers=[
                Worker(id="W4", name="John Smith", assigned_line="L2"),
                Worker(id="W5", name="Meena Iyer", assigned_line="L2", status=WorkerStatus.ABSENT),
            ],
        ),
    ]


def _ids(line):
    return [w.id for w in line.all_workers()]


def test_normalize_name_trims_collapses_and_casefolds():
    assert normalize_name("  john   SMITH ") == "john smith"
    assert normalize_name(None) == ""


def test_move_matches_names_loosely_and_appends_to_destination():
    lines = _lines()
    action = ProposedAction(title="t", action=ActionType.MOVE, worker_names=[" ravi   shah "], to_line="L2")

    result = apply_action(action, lines)

    assert result.applied
    assert result.matched_worker_ids == ["W3"]
    assert _ids(lines[0]) == ["W1", "W2"]
    moved = lines[1].current_workers[-1]
    assert moved.id == "W3"
    assert moved.assigned_line == "L2"
    assert moved.status == WorkerStatus.PRESENT
    assert sorted(result.touched_lines) == ["L1", "L2"]


def test_move_by_id_only_touches_that_worker():
    lines = _lines()
    action = ProposedAction(
        title="t", action=ActionType.MOVE, worker_names=["John Smith"], worker_ids=["W4"], to_line="L1",
    )

    result = apply_action(action, lines)

    assert result.matched_worker_ids == ["W4"]
    assert [w.id for w in lines[0].current_workers] == ["W1", "W2", "W4"]
    assert _ids(lines[1]) == ["W5"]


def test_move_to_missing_line_changes_nothing():
    lines = _lines()
    before = [_ids(line) for line in lines]
    action = ProposedAction(title="t", action=ActionType.MOVE, worker_names=["Priya Rao"], to_line="L9")

    result = apply_action(action, lines)

    assert not result.applied
    assert [_ids(line) for line in lines] == before
    assert result.touched_lines == []


def test_unmatched_names_are_skipped_not_raised():
    lines = _lines()
    action = ProposedAction(
        title="t", action=ActionType.MOVE, worker_names=["Priya Rao", "Nobody Here"], to_line="L2",
    )

    result = apply_action(action, lines)

    assert result.matched_worker_ids == ["W2"]
    assert result.unmatched == ["Nobody Here"]


def test_absent_workers_are_never_moved():
    lines = _lines()
    action = ProposedAction(title="t", action=ActionType.MOVE, worker_names=["Meena Iyer"], to_line="L1")

    result = apply_action(action, lines)

    assert not result.applied
    assert "W5" in _ids(lines[1])


def test_assign_task_sets_status_in_place():
    lines = _lines()
    action = ProposedAction(
        title="t", action=ActionType.ASSIGN_TASK, worker_ids=["W2"], worker_names=["Priya Rao"],
        task_category="5S",
    )

    result = apply_action(action, lines)

    assert result.touched_lines == ["L1"]
    worker = lines[0].current_workers[1]
    assert worker.status == WorkerStatus.FIVE_S
    assert worker.assigned_line == "L1"


def test_unknown_task_category_maps_to_support():
    assert task_status("Kaizen Blitz") == WorkerStatus.SUPPORT
    assert task_status(None) == WorkerStatus.SUPPORT
    assert task_status(" audit  prep ") == WorkerStatus.AUDIT_PREP
    assert task_status("Logistics Support") == WorkerStatus.SUPPORT
