from fastapi.testclient import TestClient

from plant_ops.main import create_app
from plant_ops.planners.advisor import LaborAdvisor
from plant_ops.planners.config import PlannerConfig
from plant_ops.planners.service_orchestrator import ServiceOrchestrator
from plant_ops.seed_data import build_fleet, build_lines
from plant_ops.services.fleet import FleetService
from plant_ops.services.roster import RosterService


def _client():
    config = PlannerConfig(LLM_ENABLED=False)
    roster = RosterService(build_lines("A"))
    fleet = FleetService(build_fleet())
    app = create_app(
        roster=roster,
        fleet=fleet,
        advisor=LaborAdvisor(roster, config=config),
        orchestrator=ServiceOrchestrator(fleet, config),
        runner_enabled=False,
    )
    return TestClient(app)


def test_roster_views():
    client = _client()

    lines = client.get("/api/labor/lines").json()
    snapshot = client.get("/api/labor/snapshot").json()
    summary = client.get("/api/labor/summary").json()

    assert len(lines) == 6
    assert all(line["version"] >= 1 for line in lines)
    assert [s["present"] for s in snapshot] == [6] * 6
    assert summary["total_surplus"] == 12
    assert summary["is_any_line_short"] is False


def test_absenteeism_scenario_solve_and_execute_all():
    client = _client()

    body = client.post("/api/labor/scenarios/absenteeism_rebalance").json()

    suggestions = body["suggestions"]
    assert suggestions["source"] == "local"
    moves = [s for s in suggestions["suggestions"] if s["action"] == "MOVE"]
    assert len(moves) == 3
    assert all(m["to_line"] == "L2" for m in moves)

    remaining = len(suggestions["suggestions"])
    while remaining:
        response = client.post("/api/labor/suggestions/0/execute")
        assert response.status_code == 200
        remaining = response.json()["remaining"]

    summary = client.get("/api/labor/summary").json()
    assert summary["is_any_line_short"] is False
    assert summary["total_surplus"] == 0
    assert client.get("/api/labor/suggestions").json()["count"] == 0


def test_solve_without_scenario_and_stale_execute():
    client = _client()
    client.post("/api/labor/scenarios/absenteeism_rebalance", params={"solve": False})

    solved = client.post("/api/labor/suggestions", json={"event": "L2 short"}).json()
    assert solved["suggestions"]

    client.post("/api/labor/scenarios/surplus_optimization", params={"solve": False})
    response = client.post("/api/labor/suggestions/0/execute")

    assert response.status_code == 409


def test_execute_errors():
    client = _client()

    assert client.post("/api/labor/suggestions/5/execute").status_code == 404
    assert client.post("/api/labor/scenarios/meteor_strike").status_code == 404


def test_ad_hoc_action_skips_unknown_workers():
    client = _client()

    response = client.post("/api/labor/execute", json={
        "title": "manual",
        "action": "MOVE",
        "worker_names": ["Nobody At All"],
        "to_line": "L1",
    })

    assert response.status_code == 200
    assert response.json()["applied"] is False


def test_machine_service_flow():
    client = _client()

    assert client.get("/api/machines").status_code == 200
    assert client.get("/api/machines/X99").status_code == 404
    assert client.post("/api/machines/P01/service-booking", json={}).status_code == 404

    analysis = client.post(
        "/api/machines/P01/service-analysis",
        json={"service_type": "Regular", "issue_description": "Hydraulic leak"},
    ).json()
    assert len(analysis["strategies"]) == 5

    booked = client.post("/api/machines/P01/service-booking", json={})
    assert booked.status_code == 200
    assert client.get("/api/machines/P01").json()["service_stage"] == "Dispatched"

    changes = client.post("/api/machines/advance-service").json()["changes"]
    assert changes[0]["machine_id"] == "P01"

    events = client.get("/api/events", params={"event_type": "SERVICE_BOOKED"}).json()["events"]
    assert len(events) == 1


def test_system_endpoints():
    client = _client()

    assert client.get("/api/system/runner").json()["is_running"] is False
    assert client.post("/api/system/runner/cycle").json()["cycle"] == 1
    assert "task_categories" in client.get("/api/system/planner").json()


def test_module_entry_point_serves_the_app(monkeypatch):
    import uvicorn

    from plant_ops import __main__ as entry

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.delenv("PLANT_HOST", raising=False)
    monkeypatch.setenv("PLANT_PORT", "8123")

    entry.main()

    assert calls == [("plant_ops.main:app", {"host": "127.0.0.1", "port": 8123})]
