# plant_ops/dependencies.py
"""
FastAPI dependencies - hand out the services held on `app.state`.
"""

from fastapi import Request

from .planners.advisor import LaborAdvisor
from .planners.service_orchestrator import ServiceOrchestrator
from .runner import RefreshRunner
from .services.fleet import FleetService
from .services.roster import RosterService


def get_roster(request: Request) -> RosterService:
    return request.app.state.roster


def get_advisor(request: Request) -> LaborAdvisor:
    return request.app.state.advisor


def get_fleet(request: Request) -> FleetService:
    return request.app.state.fleet


def get_orchestrator(request: Request) -> ServiceOrchestrator:
    return request.app.state.orchestrator


def get_runner(request: Request) -> RefreshRunner:
    return request.app.state.runner
