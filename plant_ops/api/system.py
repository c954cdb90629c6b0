# plant_ops/api/system.py
"""
System API endpoints - planner configuration and the refresh runner.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies import get_advisor, get_runner
from ..planners.advisor import LaborAdvisor
from ..planners.config import get_config, set_llm_enabled
from ..runner import RefreshRunner


router = APIRouter(prefix="/api/system", tags=["system"])


# ============ Request Models ============

class PlannerToggleRequest(BaseModel):
    llm_enabled: bool


# ============ Planner ============

@router.get("/planner")
def get_planner_config(advisor: LaborAdvisor = Depends(get_advisor)):
    """Current planner configuration and whether the delegated planner can be used."""
    config = get_config()
    delegated = advisor.delegated
    return {
        "llm_enabled": config.LLM_ENABLED,
        "delegated_available": bool(delegated and delegated.is_available()),
        "max_attempts": config.MAX_ATTEMPTS,
        "request_timeout_seconds": config.REQUEST_TIMEOUT_SECONDS,
        "total_budget_seconds": config.TOTAL_BUDGET_SECONDS,
        "optimistic_locking": config.OPTIMISTIC_LOCKING,
        "task_categories": list(config.TASK_CATEGORIES),
        "utilization_ceiling_pct": config.UTILIZATION_CEILING_PCT,
    }


@router.post("/planner")
def update_planner_config(request: PlannerToggleRequest):
    return set_llm_enabled(request.llm_enabled)


# ============ Refresh Runner ============

@router.get("/runner")
def runner_status(runner: RefreshRunner = Depends(get_runner)):
    return runner.get_status()


@router.post("/runner/start")
def start_runner(runner: RefreshRunner = Depends(get_runner)):
    return runner.start()


@router.post("/runner/stop")
def stop_runner(runner: RefreshRunner = Depends(get_runner)):
    return runner.stop()


@router.post("/runner/cycle")
def run_single_cycle(runner: RefreshRunner = Depends(get_runner)):
    """Run one refresh cycle now, outside the timer."""
    return runner.run_cycle()
