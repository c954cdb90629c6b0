# plant_ops/api/machines.py
"""
Machine API endpoints - fleet status, service analysis and booking.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..dependencies import get_fleet, get_orchestrator
from ..models.machine import ServiceType
from ..planners.service_orchestrator import AnalysisNotFoundError, ServiceOrchestrator
from ..services.fleet import FleetService, MachineNotServiceableError, UnknownMachineError


router = APIRouter(prefix="/api/machines", tags=["machines"])


# ============ Request Models ============

class ServiceAnalysisRequest(BaseModel):
    service_type: ServiceType = ServiceType.REGULAR
    issue_description: str = ""


class ServiceBookingRequest(BaseModel):
    strategy_index: Optional[int] = None
    vendor_index: Optional[int] = None


# ============ Fleet ============

@router.get("")
def list_machines(fleet: FleetService = Depends(get_fleet)):
    return fleet.machines()


@router.get("/bookings")
def list_bookings(fleet: FleetService = Depends(get_fleet)):
    """Machines currently under service and the load moved off them."""
    return [b.to_dict() for b in fleet.bookings()]


@router.post("/advance-service")
def advance_service(fleet: FleetService = Depends(get_fleet)):
    """Move every machine under service one stage forward."""
    return {"changes": fleet.advance_service_stages()}


@router.get("/{machine_id}")
def get_machine(machine_id: str, fleet: FleetService = Depends(get_fleet)):
    try:
        return fleet.get(machine_id)
    except UnknownMachineError:
        raise HTTPException(status_code=404, detail=f"Machine {machine_id} not found")


# ============ Service ============

@router.post("/{machine_id}/service-analysis")
def analyze_service(
    machine_id: str,
    request: ServiceAnalysisRequest,
    orchestrator: ServiceOrchestrator = Depends(get_orchestrator),
):
    """
    Redistribution strategies, vendor estimates and a recommendation for
    taking the machine out of service. Nothing is changed until booking.
    """
    try:
        return orchestrator.analyze(machine_id, request.service_type, request.issue_description)
    except UnknownMachineError:
        raise HTTPException(status_code=404, detail=f"Machine {machine_id} not found")


@router.get("/{machine_id}/service-analysis")
def get_service_analysis(machine_id: str, orchestrator: ServiceOrchestrator = Depends(get_orchestrator)):
    try:
        return orchestrator.latest(machine_id)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail=f"No service analysis for {machine_id}")


@router.post("/{machine_id}/service-booking")
def book_service(
    machine_id: str,
    request: ServiceBookingRequest,
    orchestrator: ServiceOrchestrator = Depends(get_orchestrator),
):
    """Apply a strategy from the latest analysis; recommended options by default."""
    try:
        booking = orchestrator.book(machine_id, request.strategy_index, request.vendor_index)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail=f"No service analysis for {machine_id}; analyze first")
    except MachineNotServiceableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except IndexError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return booking.to_dict()
