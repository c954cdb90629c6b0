# plant_ops/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import settings
from .planners.advisor import LaborAdvisor
from .planners.config import get_config
from .planners.delegated_planner import DelegatedPlanner
from .planners.service_orchestrator import ServiceOrchestrator
from .runner import RefreshRunner
from .seed_data import build_fleet, build_lines
from .services.fleet import FleetService
from .services.roster import RosterService

from .api import events as events_api
from .api import labor as labor_api
from .api import machines as machines_api
from .api import system as system_api

logger = logging.getLogger(__name__)


def create_app(
    roster: Optional[RosterService] = None,
    fleet: Optional[FleetService] = None,
    advisor: Optional[LaborAdvisor] = None,
    orchestrator: Optional[ServiceOrchestrator] = None,
    runner_enabled: Optional[bool] = None,
) -> FastAPI:
    """Wire the services onto `app.state`; anything passed in is used as-is."""
    config = get_config()

    if roster is None:
        roster = RosterService(build_lines(settings.shift) if settings.seed_on_startup else [])
    if fleet is None:
        fleet = FleetService(build_fleet() if settings.seed_on_startup else [])
    if advisor is None:
        advisor = LaborAdvisor(roster, delegated=DelegatedPlanner(config=config), config=config)
    if orchestrator is None:
        orchestrator = ServiceOrchestrator(fleet, config)
    runner = RefreshRunner(roster, fleet, config.REFRESH_INTERVAL_SECONDS)
    start_runner = settings.runner_enabled if runner_enabled is None else runner_enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_runner:
            runner.start()
        logger.info("Plant ops ready: %d lines, %d machines", len(roster.lines()), len(fleet.machines()))
        yield
        if runner.is_running:
            runner.stop()

    app = FastAPI(title="Plant Labor & Machine Decision Engine", lifespan=lifespan)
    app.state.roster = roster
    app.state.fleet = fleet
    app.state.advisor = advisor
    app.state.orchestrator = orchestrator
    app.state.runner = runner

    # Include API routers
    app.include_router(labor_api.router)
    app.include_router(machines_api.router)
    app.include_router(events_api.router)
    app.include_router(system_api.router)

    @app.get("/")
    def root():
        return {"service": app.title, "shift": settings.shift}

    return app


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
