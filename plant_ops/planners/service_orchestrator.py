# plant_ops/planners/service_orchestrator.py
"""
Service orchestrator - redistribution request -> strategies, vendor
estimates and a recommendation.
"""

import logging
import threading
from typing import Dict, List, Optional

from ..models.machine import (
    MachineStatus,
    ServiceAnalysis,
    ServiceRecommendation,
    ServiceType,
    VendorEstimate,
)
from ..services.event_logger import log_event
from ..services.fleet import FleetService, ServiceBooking
from ..services.redistribution import recommend_strategy, redistribute
from .config import PlannerConfig, get_config

logger = logging.getLogger(__name__)


class AnalysisNotFoundError(KeyError):
    pass


# Base repair cost (INR) per service type; vendors scale it
_BASE_COST = {ServiceType.REGULAR: 45000.0, ServiceType.BREAKDOWN: 180000.0}


def build_vendor_estimates(machine: MachineStatus, service_type: ServiceType) -> List[VendorEstimate]:
    """Three deterministic bids. Third-party work voids an active warranty."""
    base = _BASE_COST[service_type]
    urgent = service_type == ServiceType.BREAKDOWN
    return [
        VendorEstimate(
            vendor_name="OEM Service Division",
            repair_estimate_inr=0.0 if machine.is_under_warranty else round(base * 1.3, 2),
            warranty_months=12,
            completion_time="24 hours" if urgent else "2 days",
            reputation_score=4.8,
            description="Original manufacturer service; genuine spares.",
            voids_warranty=False,
        ),
        VendorEstimate(
            vendor_name="Certified Industrial Partner",
            repair_estimate_inr=round(base, 2),
            warranty_months=6,
            completion_time="18 hours" if urgent else "1 day",
            reputation_score=4.4,
            description="OEM-certified partner; certified spares.",
            voids_warranty=False,
        ),
        VendorEstimate(
            vendor_name="Local Maintenance Contractor",
            repair_estimate_inr=round(base * 0.6, 2),
            warranty_months=3,
            completion_time="12 hours" if urgent else "1 day",
            reputation_score=3.6,
            description="Fastest turnaround; non-genuine spares.",
            voids_warranty=machine.is_under_warranty,
        ),
    ]


def recommend_vendor(estimates: List[VendorEstimate]) -> int:
    """Cheapest estimate that keeps the warranty; ties go to reputation."""
    keeps = [(i, e) for i, e in enumerate(estimates) if not e.voids_warranty] or list(enumerate(estimates))
    return min(keeps, key=lambda item: (item[1].repair_estimate_inr, -item[1].reputation_score))[0]


class ServiceOrchestrator:
    """
    Answers redistribution requests for a machine going out of service.

    Strategies are computed locally and deterministically; vendor and
    financial fields are presentation-only.
    """

    def __init__(self, fleet: FleetService, config: Optional[PlannerConfig] = None):
        self.fleet = fleet
        self.config = config or get_config()
        self._lock = threading.Lock()
        self._analyses: Dict[str, ServiceAnalysis] = {}

    def analyze(self, machine_id: str, service_type: ServiceType, issue_description: str = "") -> ServiceAnalysis:
        machine = self.fleet.get(machine_id)
        fleet = self.fleet.machines()

        strategies = redistribute(machine, fleet, self.config.UTILIZATION_CEILING_PCT)
        displaced = machine.current_load_units_hr
        strategy_index = recommend_strategy(strategies, displaced)

        estimates = build_vendor_estimates(machine, service_type)
        vendor_index = recommend_vendor(estimates)

        chosen = strategies[strategy_index]
        vendor = estimates[vendor_index]
        analysis = ServiceAnalysis(
            machine_id=machine.id,
            machine_name=machine.name,
            service_type=service_type,
            issue_description=issue_description,
            warranty_status="Active" if machine.is_under_warranty else "Expired",
            displaced_load_units=displaced,
            strategies=strategies,
            vendor_estimates=estimates,
            recommendation=ServiceRecommendation(
                strategy_index=strategy_index,
                strategy_reasoning=(
                    f"'{chosen.name}' recovers {chosen.recovered_units} of {displaced} units/hr "
                    f"at {chosen.risk_level.value} risk."
                ),
                vendor_index=vendor_index,
                vendor_reasoning=(
                    f"{vendor.vendor_name}: INR {vendor.repair_estimate_inr:,.0f}, {vendor.completion_time}"
                    + (", keeps warranty." if machine.is_under_warranty and not vendor.voids_warranty else ".")
                ),
            ),
        )

        with self._lock:
            self._analyses[machine_id] = analysis
        log_event(
            "SERVICE_ANALYSIS",
            f"{machine.id} {service_type.value}: {len(strategies)} strategies, recommended '{chosen.name}'",
        )
        return analysis

    def latest(self, machine_id: str) -> ServiceAnalysis:
        with self._lock:
            analysis = self._analyses.get(machine_id)
        if analysis is None:
            raise AnalysisNotFoundError(machine_id)
        return analysis

    def book(
        self,
        machine_id: str,
        strategy_index: Optional[int] = None,
        vendor_index: Optional[int] = None,
    ) -> ServiceBooking:
        """Apply a strategy from the latest analysis (recommended ones by default)."""
        analysis = self.latest(machine_id)
        s_idx = analysis.recommendation.strategy_index if strategy_index is None else strategy_index
        v_idx = analysis.recommendation.vendor_index if vendor_index is None else vendor_index
        if not 0 <= s_idx < len(analysis.strategies) or not 0 <= v_idx < len(analysis.vendor_estimates):
            raise IndexError(f"No strategy {s_idx} / vendor {v_idx} in analysis for {machine_id}")

        booking = self.fleet.book_service(
            machine_id,
            analysis.service_type,
            analysis.strategies[s_idx],
            analysis.vendor_estimates[v_idx].vendor_name,
        )
        with self._lock:
            self._analyses.pop(machine_id, None)
        return booking
