"""
Machine fleet models used by service orchestration and load redistribution.
"""

from datetime import date
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel, Field


class MachineState(str, Enum):
    OPERATIONAL = "operational"
    DOWN = "down"
    MAINTENANCE = "maintenance"


class ServiceStage(str, Enum):
    DISPATCHED = "Dispatched"
    TECHNICIAN_ASSIGNED = "Technician Assigned"
    DIAGNOSIS = "Diagnosis"
    IN_PROGRESS = "In Progress"
    QUALITY_CHECK = "Quality Check"
    RESTORED = "Restored"


SERVICE_STAGES: List[ServiceStage] = list(ServiceStage)


class ServiceType(str, Enum):
    REGULAR = "Regular"
    BREAKDOWN = "Breakdown"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return {"Low": 0, "Medium": 1, "High": 2}[self.value]


class MachineStatus(SQLModel):
    id: str
    name: str
    line_id: str
    status: MachineState = MachineState.OPERATIONAL
    capacity_units_hr: float = Field(ge=0)
    current_load_units_hr: float = Field(default=0.0, ge=0)
    utilization: float = 0.0
    oee: float = 0.0
    is_under_warranty: bool = False
    parallel_machine_ids: List[str] = Field(default_factory=list)
    service_stage: Optional[ServiceStage] = None
    next_service: Optional[date] = None

    def set_load(self, units: float) -> None:
        """Set the current load and keep utilization in step with it."""
        self.current_load_units_hr = max(0.0, units)
        self.utilization = utilization_pct(self.current_load_units_hr, self.capacity_units_hr)

    def headroom(self, ceiling_pct: float) -> float:
        """Units/hr that can still be added before reaching `ceiling_pct`."""
        return max(0.0, self.capacity_units_hr * ceiling_pct / 100.0 - self.current_load_units_hr)


def utilization_pct(load: float, capacity: float) -> float:
    if capacity <= 0:
        return 0.0
    return round(load / capacity * 100.0, 1)


class RedistributionStep(SQLModel):
    target_machine_id: str
    additional_load_units: float
    new_utilization: float
    risk_level: RiskLevel


class RedistributionStrategy(SQLModel):
    name: str
    description: str
    reasoning: str = ""
    steps: List[RedistributionStep] = Field(default_factory=list)
    recovered_units: float = 0.0
    unserved_units: float = 0.0
    projected_throughput: float = 0.0
    risk_level: RiskLevel = RiskLevel.LOW


class VendorEstimate(SQLModel):
    vendor_name: str
    repair_estimate_inr: float
    warranty_months: int
    completion_time: str
    reputation_score: float
    description: str = ""
    voids_warranty: bool = False


class ServiceRecommendation(SQLModel):
    strategy_index: int
    strategy_reasoning: str
    vendor_index: int
    vendor_reasoning: str


class ServiceAnalysis(SQLModel):
    machine_id: str
    machine_name: str
    service_type: ServiceType
    issue_description: str = ""
    warranty_status: str
    displaced_load_units: float
    strategies: List[RedistributionStrategy] = Field(default_factory=list)
    vendor_estimates: List[VendorEstimate] = Field(default_factory=list)
    recommendation: ServiceRecommendation
