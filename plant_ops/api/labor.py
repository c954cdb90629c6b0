# plant_ops/api/labor.py
"""
Labor API endpoints - roster views, rebalancing suggestions and execution.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..dependencies import get_advisor, get_roster
from ..models.labor import ProposedAction
from ..planners.advisor import LaborAdvisor, SuggestionNotFoundError
from ..planners.errors import SolveSuperseded
from ..services.roster import RosterService, StaleActionError
from ..services.scenarios import UnknownScenarioError, trigger_scenario


router = APIRouter(prefix="/api/labor", tags=["labor"])


# ============ Request Models ============

class SolveRequest(BaseModel):
    event: str = ""


# ============ Roster Views ============

@router.get("/lines")
def get_lines(roster: RosterService = Depends(get_roster)):
    """Full roster with per-line version stamps."""
    versions = roster.versions()
    return [
        {**line.model_dump(), "version": versions.get(line.id)}
        for line in roster.lines()
    ]


@router.get("/snapshot")
def get_snapshot(roster: RosterService = Depends(get_roster)):
    return roster.snapshot()


@router.get("/summary")
def get_summary(roster: RosterService = Depends(get_roster)):
    return roster.summary()


# ============ Suggestions ============

@router.post("/suggestions")
def request_suggestions(request: SolveRequest, advisor: LaborAdvisor = Depends(get_advisor)):
    """
    Solve the current roster.

    Uses the delegated planner when configured and falls back to the local
    solver on any failure; `source` says which one answered.
    """
    try:
        return advisor.request_suggestions(request.event)
    except SolveSuperseded as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/suggestions")
def get_pending_suggestions(advisor: LaborAdvisor = Depends(get_advisor)):
    pending = advisor.pending()
    return {
        "count": len(pending),
        "event": advisor.last_event,
        "source": advisor.last_source,
        "suggestions": pending,
    }


@router.post("/suggestions/{index}/execute")
def execute_suggestion(index: int, advisor: LaborAdvisor = Depends(get_advisor)):
    """Apply one pending suggestion and remove it from the list."""
    try:
        result = advisor.execute(index)
    except SuggestionNotFoundError:
        raise HTTPException(status_code=404, detail=f"No pending suggestion at index {index}")
    except StaleActionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {**result.to_dict(), "remaining": len(advisor.pending())}


@router.post("/execute")
def execute_action(action: ProposedAction, roster: RosterService = Depends(get_roster)):
    """Apply an ad-hoc action. Unmatched workers are skipped, never an error."""
    try:
        result = roster.apply(action, enforce_versions=bool(action.basis_versions))
    except StaleActionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return result.to_dict()


# ============ Scenarios ============

@router.post("/scenarios/{name}")
def run_scenario(
    name: str,
    solve: bool = True,
    roster: RosterService = Depends(get_roster),
    advisor: LaborAdvisor = Depends(get_advisor),
):
    """
    Trigger a roster scenario: surplus_optimization, absenteeism_rebalance, reset.

    Optionally re-solves right away with the scenario's event text.
    """
    try:
        event = trigger_scenario(roster, name)
    except UnknownScenarioError:
        raise HTTPException(status_code=404, detail=f"Unknown scenario: {name}")

    if name == "reset":
        advisor.clear()
        return {"status": "ok", "scenario": name, "event": event, "suggestions": None}

    suggestions: Optional[dict] = None
    if solve:
        try:
            suggestions = advisor.request_suggestions(event).model_dump()
        except SolveSuperseded as e:
            raise HTTPException(status_code=409, detail=str(e))

    return {"status": "ok", "scenario": name, "event": event, "suggestions": suggestions}
